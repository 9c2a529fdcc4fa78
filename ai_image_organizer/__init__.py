"""Public API for ai_image_organizer.

Expose a small, explicit set of helpers used by the CLI, the bot and tests.
Keep this module simple to avoid surprising lazy-imports.
"""
from importlib.metadata import PackageNotFoundError, version

try:
	__version__ = version("ai_image_organizer")
except PackageNotFoundError:
	__version__ = "0.0.0"

from .config import MAX_ITEMS, Settings, load_config, read_prompt_file
from .models import (
	AnalysisRecord,
	Category,
	Item,
	OrganizeOutcome,
	OrganizerError,
	Result,
	ValidationError,
)
from .ingest import decode_data_url, items_from_request
from .parsing import ParseError, ParseOutcome, parse_structured
from .providers import InferenceClient, OpenAIProvider
from .pipeline import organize, organize_sync
from .archive import archive_name, build_archive, build_summary_report, suggest_file_name
from .json_api import handle_json_request, handle_json_request_async

__all__ = [
	"MAX_ITEMS",
	"Settings",
	"load_config",
	"read_prompt_file",
	"AnalysisRecord",
	"Category",
	"Item",
	"OrganizeOutcome",
	"OrganizerError",
	"Result",
	"ValidationError",
	"decode_data_url",
	"items_from_request",
	"ParseError",
	"ParseOutcome",
	"parse_structured",
	"InferenceClient",
	"OpenAIProvider",
	"organize",
	"organize_sync",
	"archive_name",
	"build_archive",
	"build_summary_report",
	"suggest_file_name",
	"handle_json_request",
	"handle_json_request_async",
	"__version__",
]
