import uuid

from sqlalchemy import String

# The hosted backend keys every table with a UUID rendered as text.
ID_TYPE = String(36)


def new_id() -> str:
    return str(uuid.uuid4())
