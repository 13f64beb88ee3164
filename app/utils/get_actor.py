from fastapi import Header

SYSTEM_ACTOR = "system"


async def get_actor(x_actor: str | None = Header(default=None)) -> str:
    """Acting user as reported by the calling layer; not verified here."""
    return (x_actor or "").strip() or SYSTEM_ACTOR
