"""Initial migration: create tournament, rounddefinition, participant, match,
roundpairing tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tournament",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("organizer_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("number_of_rounds", sa.Integer(), nullable=False),
        sa.Column("round_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("score_submission_extra_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("round_start_mode", sa.String(), nullable=False),
        sa.Column("tournament_points_system", sa.String(), nullable=False),
        sa.Column("points_for_win", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("points_for_draw", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("points_for_loss", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tournament_organizer_id"), "tournament", ["organizer_id"], unique=False)

    op.create_table(
        "rounddefinition",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("deployment_id", sa.Integer(), nullable=True),
        sa.Column("deployment_name", sa.String(), nullable=True),
        sa.Column("primary_mission_id", sa.Integer(), nullable=True),
        sa.Column("primary_mission_name", sa.String(), nullable=True),
        sa.Column("is_split_map_layout", sa.Boolean(), nullable=False),
        sa.Column("map_layout_even", sa.String(), nullable=True),
        sa.Column("map_layout_odd", sa.String(), nullable=True),
        sa.Column("bye_large_points", sa.Integer(), nullable=False),
        sa.Column("bye_small_points", sa.Integer(), nullable=False),
        sa.Column("split_large_points", sa.Integer(), nullable=False),
        sa.Column("split_small_points", sa.Integer(), nullable=False),
        sa.Column("pairing_algorithm", sa.String(), nullable=False),
        sa.Column("player_level_pairing_strategy", sa.String(), nullable=False),
        sa.Column("table_assignment_strategy", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "round_number", name="uq_tournament_round_definition"),
    )
    op.create_index(op.f("ix_rounddefinition_tournament_id"), "rounddefinition", ["tournament_id"], unique=False)

    op.create_table(
        "participant",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("confirmed", sa.Boolean(), nullable=False),
        sa.Column("is_paid", sa.Boolean(), nullable=False),
        sa.Column("army_list_status", sa.String(), nullable=False),
        sa.Column("is_beginner", sa.Boolean(), nullable=False),
        sa.Column("registered_at", sa.DateTime(), nullable=False),
        sa.Column("tournament_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("score_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("draws", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "user_id", name="uq_tournament_participant"),
    )
    op.create_index(op.f("ix_participant_tournament_id"), "participant", ["tournament_id"], unique=False)
    op.create_index(op.f("ix_participant_user_id"), "participant", ["user_id"], unique=False)

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("table_number", sa.Integer(), nullable=True),
        sa.Column("player1_id", sa.Integer(), nullable=False),
        sa.Column("player2_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=True),
        sa.Column("game_end_time", sa.DateTime(), nullable=True),
        sa.Column("result_submission_deadline", sa.DateTime(), nullable=True),
        sa.Column("player1_total_score", sa.Integer(), nullable=True),
        sa.Column("player2_total_score", sa.Integer(), nullable=True),
        sa.Column("match_winner", sa.String(), nullable=True),
        sa.Column("resolution", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "round_number", "player1_id", name="uq_match_round_player1"),
    )
    op.create_index(op.f("ix_match_tournament_id"), "match", ["tournament_id"], unique=False)
    op.create_index(op.f("ix_match_round_number"), "match", ["round_number"], unique=False)

    op.create_table(
        "roundpairing",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("tournament_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("match_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bye_player_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournament.id"]),
        sa.UniqueConstraint("tournament_id", "round_number", name="uq_round_pairing"),
    )
    op.create_index(op.f("ix_roundpairing_tournament_id"), "roundpairing", ["tournament_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_roundpairing_tournament_id"), table_name="roundpairing")
    op.drop_table("roundpairing")
    op.drop_index(op.f("ix_match_round_number"), table_name="match")
    op.drop_index(op.f("ix_match_tournament_id"), table_name="match")
    op.drop_table("match")
    op.drop_index(op.f("ix_participant_user_id"), table_name="participant")
    op.drop_index(op.f("ix_participant_tournament_id"), table_name="participant")
    op.drop_table("participant")
    op.drop_index(op.f("ix_rounddefinition_tournament_id"), table_name="rounddefinition")
    op.drop_table("rounddefinition")
    op.drop_index(op.f("ix_tournament_organizer_id"), table_name="tournament")
    op.drop_table("tournament")
