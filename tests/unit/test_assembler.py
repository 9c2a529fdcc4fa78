from ai_image_organizer import AnalysisRecord, Category, Item
from ai_image_organizer.services.assembler import assemble


def _rec(i, failed=False):
    return AnalysisRecord(index=i, content=f"c{i}", extracted_text=f"t{i}", theme="misc", confidence=70, failed=failed,
                          error="bad" if failed else None)


def test_every_index_lands_in_exactly_one_category():
    records = [_rec(0), _rec(1), _rec(2), _rec(3)]
    cats = [
        Category(name="work", description="Work", members=[0, 2]),
        Category(name="personal", description="Personal", members=[2, 1]),
    ]
    results, final = assemble(records, cats)

    assert [r.category for r in results] == ["work", "personal", "work", "uncategorized"]
    assert [(c.name, c.members) for c in final] == [("work", [0, 2]), ("personal", [1]), ("uncategorized", [3])]
    assert final[-1].description == "Images that did not match any category"
    members = [i for c in final for i in c.members]
    assert sorted(members) == [0, 1, 2, 3]


def test_empty_categories_are_dropped():
    results, final = assemble([_rec(0)], [
        Category(name="first", description="", members=[0]),
        Category(name="shadowed", description="", members=[0]),
    ])
    assert [c.name for c in final] == ["first"]
    assert results[0].category == "first"


def test_results_follow_index_order_and_status():
    items = [Item(index=0, data=b"a", media_type="image/png", name="a.png"), Item(index=1, data=b"b", media_type="image/png")]
    results, _ = assemble([_rec(1, failed=True), _rec(0)], [Category(name="all", description="", members=[0, 1])], items)
    assert [r.index for r in results] == [0, 1]
    assert [r.status for r in results] == ["success", "error"]
    assert results[1].error == "bad"
    assert [r.file_name for r in results] == ["a.png", "image_2"]
    assert results[0].to_dict() == {
        "index": 0,
        "analysis": {"content": "c0", "category": "all", "extracted_text": "t0", "confidence": 70},
        "status": "success",
        "fileName": "a.png",
    }
