from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

# An exclusion mask mirrors the schema shape with boolean leaves:
#   {"password": True, "profile": {"internal_notes": True}}
# True drops the key's whole subtree; a nested mapping applies one level down.

AttributeMask = Mapping[str, Any]


def is_excluded(mask: Optional[Any], key: str) -> bool:
    """True only when mask[key] is exactly True."""

    if not isinstance(mask, Mapping):
        return False
    return mask.get(key) is True


def child_mask(mask: Optional[Any], key: str) -> Optional[Mapping[str, Any]]:
    """Return the nested mask for key, or None when there is none."""

    if not isinstance(mask, Mapping):
        return None
    sub = mask.get(key)
    return sub if isinstance(sub, Mapping) else None


def apply_mask(value: Any, mask: Optional[Any]) -> Any:
    """Return value without the keys mask excludes.

    Mappings are rebuilt one level at a time; list elements share the mask,
    as the elements of an array of objects do. Other values pass through.
    """

    if not isinstance(mask, Mapping) or not mask:
        return value
    if isinstance(value, Mapping):
        return {
            k: apply_mask(v, child_mask(mask, k))
            for k, v in value.items()
            if not is_excluded(mask, k)
        }
    if isinstance(value, (list, tuple)):
        return [apply_mask(item, mask) for item in value]
    return value


def mask_from_paths(paths: Iterable[str]) -> Dict[str, Any]:
    """Build a nested mask from dotted paths.

    mask_from_paths(["password", "profile.notes"])
      -> {"password": True, "profile": {"notes": True}}

    A shorter path wins over a longer one sharing its prefix.
    """

    out: Dict[str, Any] = {}
    for raw in paths:
        parts = [p for p in str(raw).split(".") if p]
        if not parts:
            continue
        cur = out
        for part in parts[:-1]:
            nxt = cur.get(part)
            if nxt is True:
                break
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        else:
            cur[parts[-1]] = True
    return out


def combine_masks(*masks: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Union of several masks; a key excluded by any of them stays excluded."""

    out: Dict[str, Any] = {}
    for mask in masks:
        if not isinstance(mask, Mapping):
            continue
        for key, value in mask.items():
            if value is True or out.get(key) is True:
                out[key] = True
            elif isinstance(value, Mapping):
                prev = out.get(key)
                out[key] = combine_masks(prev if isinstance(prev, Mapping) else None, value)
    return out


def excluded_paths(mask: Optional[Mapping[str, Any]], prefix: str = "") -> List[str]:
    """Flatten a mask back to sorted dotted paths."""

    if not isinstance(mask, Mapping):
        return []
    out: List[str] = []
    for key, value in mask.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if value is True:
            out.append(path)
        elif isinstance(value, Mapping):
            out.extend(excluded_paths(value, path))
    return sorted(out)
