from typing import Protocol, Optional


class InferenceClient(Protocol):
    """Anything that can answer an instruction, optionally about one image.

    Implementations return the model's raw text; callers are responsible for
    recovering structured data from it.
    """

    def submit(self, instruction: str, image: Optional[bytes] = None, media_type: Optional[str] = None) -> str:
        ...
