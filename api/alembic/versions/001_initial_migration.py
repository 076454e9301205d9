"""Initial migration: create exercise and study tables

Revision ID: initial
Revises:
Create Date: 2025-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'initial'
down_revision = None
branch_labels = None
depends_on = None

FLEXIBILITY_TEXT_COLUMNS = [
    # Action columns
    'selected_method', 'efficiency_selection_actions', 'system_matching_actions',
    'self_explanation_actions', 'transformation_actions', 'equalization_actions',
    'substitution_actions', 'elimination_actions', 'first_solution_actions',
    'equation_selection', 'second_solution_actions',
    # Choice columns
    'self_explanation_choice', 'first_solution_choice', 'second_solution_choice',
    'comparison_choice', 'resolving_choice',
    # Phase columns
    'efficiency_selection', 'system_selection', 'self_explanation', 'transformation',
    'equalization', 'substitution', 'elimination', 'first_solution', 'second_solution',
    'comparison', 'transformation_resolve', 'equalization_resolve', 'substitution_resolve',
    'elimination_resolve', 'resolve_conclusion',
]

CK_TEXT_COLUMNS = [
    'equalization', 'simplification', 'first_solution', 'second_solution',
    'equalization_actions', 'simplification_actions', 'first_solution_actions',
    'second_solution_actions',
]


def upgrade(db: str = 'exercises') -> None:
    globals()[f'upgrade_{db}']()


def downgrade(db: str = 'exercises') -> None:
    globals()[f'downgrade_{db}']()


def upgrade_exercises() -> None:
    # Create equalization_exercise table
    op.create_table(
        'equalization_exercise',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Create flexibility_exercise table
    op.create_table(
        'flexibility_exercise',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('exercise_type', sa.Integer(), nullable=False),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('exercise_type', 'exercise_id', name='flexibility_exercise_type_id_key')
    )
    op.create_index(op.f('ix_flexibility_exercise_exercise_type'), 'flexibility_exercise', ['exercise_type'], unique=False)


def downgrade_exercises() -> None:
    op.drop_index(op.f('ix_flexibility_exercise_exercise_type'), table_name='flexibility_exercise')
    op.drop_table('flexibility_exercise')
    op.drop_table('equalization_exercise')


def upgrade_studies() -> None:
    # Create flexibility_study table
    op.create_table(
        'flexibility_study',
        sa.Column('study_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('study_id')
    )

    # Create flexibility_study_exercise table
    op.create_table(
        'flexibility_study_exercise',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('study_id', sa.Integer(), nullable=False),
        sa.Column('flexibility_id', sa.Integer(), nullable=False),
        sa.Column('exercise_type', sa.Integer(), nullable=False),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['study_id'], ['flexibility_study.study_id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_flexibility_study_exercise_study_id'), 'flexibility_study_exercise', ['study_id'], unique=False)

    # Create flexibility_study_data table
    op.create_table(
        'flexibility_study_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('study_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('flexibility_id', sa.Integer(), nullable=False),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('exercise_type', sa.Integer(), nullable=False),
        sa.Column('agent_condition', sa.Integer(), nullable=False),
        sa.Column('agent_type', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        *[sa.Column(name, sa.String(), nullable=True) for name in FLEXIBILITY_TEXT_COLUMNS],
        sa.Column('total_time', sa.Float(), nullable=True),
        sa.Column('total_errors', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_flexibility_study_data_study_id'), 'flexibility_study_data', ['study_id'], unique=False)
    op.create_index(op.f('ix_flexibility_study_data_user_id'), 'flexibility_study_data', ['user_id'], unique=False)

    # Create ck_study_data table
    op.create_table(
        'ck_study_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('study_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('exercise_type', sa.Integer(), nullable=False),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        *[sa.Column(name, sa.String(), nullable=True) for name in CK_TEXT_COLUMNS],
        sa.Column('total_time', sa.Float(), nullable=True),
        sa.Column('total_errors', sa.Integer(), nullable=True),
        sa.Column('total_hints', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_ck_study_data_study_id'), 'ck_study_data', ['study_id'], unique=False)
    op.create_index(op.f('ix_ck_study_data_user_id'), 'ck_study_data', ['user_id'], unique=False)


def downgrade_studies() -> None:
    op.drop_index(op.f('ix_ck_study_data_user_id'), table_name='ck_study_data')
    op.drop_index(op.f('ix_ck_study_data_study_id'), table_name='ck_study_data')
    op.drop_table('ck_study_data')
    op.drop_index(op.f('ix_flexibility_study_data_user_id'), table_name='flexibility_study_data')
    op.drop_index(op.f('ix_flexibility_study_data_study_id'), table_name='flexibility_study_data')
    op.drop_table('flexibility_study_data')
    op.drop_index(op.f('ix_flexibility_study_exercise_study_id'), table_name='flexibility_study_exercise')
    op.drop_table('flexibility_study_exercise')
    op.drop_table('flexibility_study')
