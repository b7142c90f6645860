from typing import Any

from .logging import log_event

EDITOR_IMAGE = "editor_image"


def editor_image_allowed(subject: str, user: dict | None, config: dict[str, Any] | None) -> bool | None:
    """Decide whether images can be uploaded from the rich text editor.

    ``None`` leaves the decision to other permission checks.
    """
    if not user or subject != EDITOR_IMAGE:
        return None
    config = config or {}
    allowed = None
    if config.get("allow_images_in_proposals"):
        allowed = True
    elif user.get("admin") and (config.get("allow_images_in_small_editor") or config.get("allow_images_in_full_editor")):
        allowed = True
    log_event("permissions.editor_image", user_id=user.get("user_id"), allowed=allowed)
    return allowed
