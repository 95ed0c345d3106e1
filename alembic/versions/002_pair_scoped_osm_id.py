"""Scope osm_id uniqueness to the (industry, country) pair.

One OSM element can match several industries (shop=beauty + beauty=nails is
both beauty and nail_salon), so it is stored once per pair instead of once
globally.

Downgrade restores the global constraint and fails if an element is stored
under more than one pair.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Postgres default name for the column-level UNIQUE created in 001
    op.drop_constraint("leads_osm_id_key", "leads", type_="unique")
    op.create_unique_constraint(
        "uq_leads_pair_osm_id", "leads", ["industry", "country", "osm_id"],
    )


def downgrade() -> None:
    op.drop_constraint("uq_leads_pair_osm_id", "leads", type_="unique")
    op.create_unique_constraint("leads_osm_id_key", "leads", ["osm_id"])
