"""001_initial_schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18 09:00:00.000000

Initial schema: coaches (with experience, certifications, reviews and
availability), sessions, registrations and locations.
"""
from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables from scratch."""
    # Import models to register them with Base.metadata
    from sessionbook.database.db import Base
    from sessionbook.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind, checkfirst=True)


def downgrade() -> None:
    """Drop all tables."""
    from sessionbook.database.db import Base
    from sessionbook.database import models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind, checkfirst=True)
