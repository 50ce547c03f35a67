from docrest.core.attributes import (
    apply_mask,
    child_mask,
    combine_masks,
    excluded_paths,
    is_excluded,
    mask_from_paths,
)


def test_is_excluded_requires_exact_true():
    mask = {"a": True, "b": 1, "c": {"d": True}, "e": "true"}
    assert is_excluded(mask, "a") is True
    assert is_excluded(mask, "b") is False
    assert is_excluded(mask, "c") is False
    assert is_excluded(mask, "e") is False
    assert is_excluded(mask, "missing") is False
    assert is_excluded(None, "a") is False


def test_child_mask_returns_nested_mapping_only():
    mask = {"a": True, "c": {"d": True}}
    assert child_mask(mask, "c") == {"d": True}
    assert child_mask(mask, "a") is None
    assert child_mask(mask, "x") is None
    assert child_mask(None, "c") is None


def test_mask_from_paths_builds_nested_mask():
    assert mask_from_paths(["password", "profile.notes", "profile.ssn"]) == {
        "password": True,
        "profile": {"notes": True, "ssn": True},
    }


def test_mask_from_paths_shorter_path_wins():
    assert mask_from_paths(["profile.notes", "profile"]) == {"profile": True}
    assert mask_from_paths(["profile", "profile.notes"]) == {"profile": True}


def test_mask_from_paths_skips_blank_entries():
    assert mask_from_paths(["", ".", "a"]) == {"a": True}


def test_combine_masks_is_a_union():
    combined = combine_masks(
        {"a": True, "p": {"x": True}},
        {"p": {"y": True}, "q": {"z": True}},
        None,
        {"q": True},
    )
    assert combined == {"a": True, "p": {"x": True, "y": True}, "q": True}


def test_excluded_paths_flattens_sorted():
    mask = {"z": True, "p": {"y": True, "x": True}, "ignored": False}
    assert excluded_paths(mask) == ["p.x", "p.y", "z"]
    assert excluded_paths(None) == []


def test_apply_mask_strips_nested_keys():
    value = {"a": 1, "p": {"x": 1, "y": 2}, "rows": [{"t": 1, "k": 2}], "s": "keep"}
    mask = {"a": True, "p": {"x": True}, "rows": {"t": True}}
    assert apply_mask(value, mask) == {"p": {"y": 2}, "rows": [{"k": 2}], "s": "keep"}
    assert value["p"] == {"x": 1, "y": 2}
    assert apply_mask(value, None) is value
    assert apply_mask("scalar", mask) == "scalar"
