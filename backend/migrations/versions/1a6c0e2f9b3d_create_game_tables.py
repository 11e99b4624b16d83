"""create rooms, players, game_rounds and guesses

Revision ID: 1a6c0e2f9b3d
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a6c0e2f9b3d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
        sa.Column('current_round', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_rounds', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('round_time', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_rooms_code', 'rooms', ['code'], unique=True)

    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id'), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('avatar_seed', sa.String(length=32), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('score >= 0', name='ck_players_score_non_negative'),
    )
    op.create_index('ix_players_room_id', 'players', ['room_id'])

    # rooms.created_by and players.room_id reference each other
    with op.batch_alter_table('rooms') as batch_op:
        batch_op.create_foreign_key('fk_rooms_created_by', 'players', ['created_by'], ['id'])

    op.create_table(
        'game_rounds',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id'), nullable=False),
        sa.Column('round_number', sa.Integer(), nullable=False),
        sa.Column('word', sa.String(length=64), nullable=False),
        sa.Column('definition', sa.Text(), nullable=False),
        sa.Column('hint1', sa.String(length=255), nullable=False),
        sa.Column('hint2', sa.String(length=255), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('room_id', 'round_number', name='uq_game_rounds_room_number'),
    )
    op.create_index('ix_game_rounds_room_id', 'game_rounds', ['room_id'])

    op.create_table(
        'guesses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('round_id', sa.Integer(), sa.ForeignKey('game_rounds.id'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id'), nullable=False),
        sa.Column('guess', sa.String(length=255), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('points', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('round_id', 'player_id', name='uq_guesses_round_player'),
    )
    op.create_index('ix_guesses_round_id', 'guesses', ['round_id'])


def downgrade():
    op.drop_index('ix_guesses_round_id', table_name='guesses')
    op.drop_table('guesses')
    op.drop_index('ix_game_rounds_room_id', table_name='game_rounds')
    op.drop_table('game_rounds')
    with op.batch_alter_table('rooms') as batch_op:
        batch_op.drop_constraint('fk_rooms_created_by', type_='foreignkey')
    op.drop_index('ix_players_room_id', table_name='players')
    op.drop_table('players')
    op.drop_index('ix_rooms_code', table_name='rooms')
    op.drop_table('rooms')
