"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_users (Alembic Migration)

Responsibilities:
  - Crear la tabla `users` (contrato de PostgresUserRepository).
  - Garantizar email único (case-insensitive) entre usuarios no borrados.
  - Restringir role a los valores conocidos.

Collaborators:
  - PostgreSQL 14+
  - infrastructure/repositories/postgres/user.py

Policy:
  - Convención de nombres (constraints / indexes):
      pk_<tabla>                         - Primary keys
      uq_<tabla>_<col>                   - Unique indexes
      ix_<tabla>_<col>                   - Indexes
      ck_<tabla>_<col>                   - Check constraints
  - Soft delete: deleted_at no nulo => fila invisible para la app; el email
    queda libre para un alta nueva.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# ============================================================
# Alembic identifiers
# ============================================================
revision: str = "001_users"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        # BigInteger + autoincrement en la PK => BIGSERIAL en PostgreSQL.
        sa.Column("id", sa.BigInteger, autoincrement=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "role",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'user'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.CheckConstraint("role IN ('admin', 'user')", name="ck_users_role"),
    )

    # Email único solo entre filas vivas, comparado en minúsculas.
    op.execute(
        "CREATE UNIQUE INDEX uq_users_email_active "
        "ON users (lower(email)) WHERE deleted_at IS NULL"
    )
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])


def downgrade() -> None:
    op.drop_index("ix_users_deleted_at", table_name="users")
    op.execute("DROP INDEX IF EXISTS uq_users_email_active")
    op.drop_table("users")
