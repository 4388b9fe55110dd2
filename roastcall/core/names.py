from typing import Optional


def clean_name(value: Optional[str], default: str) -> str:
    """Trimmed name, or the placeholder when nothing usable was given"""
    trimmed = value.strip() if isinstance(value, str) else ""
    return trimmed or default


def rename_value(value: Optional[str]) -> Optional[str]:
    """Trimmed name for a rename, or None when the rename should be ignored"""
    if not isinstance(value, str):
        return None
    return value.strip() or None
