"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

Tables created:
- users: Users keyed by the identity provider's subject id
- tickers: Ticker registry, unique per (symbol, type)
- user_watchlist: Tickers tracked by each user
- news_articles: Articles keyed by the SHA-256 of their URL
- news_article_tickers: Per-ticker sentiment of each article
- sessions: Login sessions
"""
from alembic import op
import sqlalchemy as sa
import logging

logger = logging.getLogger('alembic.runtime.migration')

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

ticker_type = sa.Enum('stock', 'crypto', name='ticker_type')


def upgrade() -> None:
    """Create initial schema."""
    logger.info("Step 1/6: Creating users table...")
    op.create_table(
        'users',
        sa.Column('user_id', sa.String(191), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('username', sa.String(191), nullable=True),
        sa.Column('notification_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('username')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    logger.info("Step 2/6: Creating tickers table...")
    op.create_table(
        'tickers',
        sa.Column('ticker_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('symbol', sa.String(32), nullable=False),
        sa.Column('ticker_type', ticker_type, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('ticker_id'),
        sa.UniqueConstraint('symbol', 'ticker_type', name='tickers_symbol_type_uq')
    )
    op.create_index('tickers_symbol_idx', 'tickers', ['symbol'])
    op.create_index('tickers_type_idx', 'tickers', ['ticker_type'])

    logger.info("Step 3/6: Creating user_watchlist table...")
    op.create_table(
        'user_watchlist',
        sa.Column('watchlist_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(191), nullable=False),
        sa.Column('ticker_id', sa.Integer(), nullable=False),
        sa.Column('notification_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE', onupdate='CASCADE'),
        sa.ForeignKeyConstraint(['ticker_id'], ['tickers.ticker_id'], ondelete='RESTRICT', onupdate='CASCADE'),
        sa.PrimaryKeyConstraint('watchlist_id'),
        sa.UniqueConstraint('user_id', 'ticker_id', name='user_watchlist_user_ticker_uq')
    )
    op.create_index('user_watchlist_user_idx', 'user_watchlist', ['user_id'])
    op.create_index('user_watchlist_ticker_idx', 'user_watchlist', ['ticker_id'])

    logger.info("Step 4/6: Creating news_articles table...")
    op.create_table(
        'news_articles',
        sa.Column('article_id', sa.String(64), nullable=False),
        sa.Column('url', sa.String(2048), nullable=False),
        sa.Column('source_domain', sa.String(255), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('overall_sentiment_score', sa.Numeric(5, 4), nullable=True),
        sa.Column('overall_sentiment_label', sa.String(32), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('article_id')
    )
    op.create_index('news_articles_published_idx', 'news_articles', ['published_at'])
    op.create_index('news_articles_source_domain_idx', 'news_articles', ['source_domain'])

    logger.info("Step 5/6: Creating news_article_tickers table...")
    op.create_table(
        'news_article_tickers',
        sa.Column('article_id', sa.String(64), nullable=False),
        sa.Column('ticker_id', sa.Integer(), nullable=False),
        sa.Column('ticker_sentiment_score', sa.Numeric(5, 4), nullable=True),
        sa.Column('ticker_sentiment_label', sa.String(32), nullable=True),
        sa.Column('relevance_score', sa.Numeric(4, 3), nullable=True),
        sa.ForeignKeyConstraint(['article_id'], ['news_articles.article_id'], ondelete='CASCADE', onupdate='CASCADE'),
        sa.ForeignKeyConstraint(['ticker_id'], ['tickers.ticker_id'], ondelete='RESTRICT', onupdate='CASCADE'),
        sa.PrimaryKeyConstraint('article_id', 'ticker_id', name='news_article_tickers_pk')
    )

    logger.info("Step 6/6: Creating sessions table...")
    op.create_table(
        'sessions',
        sa.Column('session_id', sa.String(128), nullable=False),
        sa.Column('user_id', sa.String(191), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE', onupdate='CASCADE'),
        sa.PrimaryKeyConstraint('session_id')
    )
    op.create_index('sessions_user_idx', 'sessions', ['user_id'])
    op.create_index('sessions_expires_idx', 'sessions', ['expires_at'])

    logger.info("✓ Initial schema created")


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('sessions_expires_idx', table_name='sessions')
    op.drop_index('sessions_user_idx', table_name='sessions')
    op.drop_table('sessions')
    op.drop_table('news_article_tickers')
    op.drop_index('news_articles_source_domain_idx', table_name='news_articles')
    op.drop_index('news_articles_published_idx', table_name='news_articles')
    op.drop_table('news_articles')
    op.drop_index('user_watchlist_ticker_idx', table_name='user_watchlist')
    op.drop_index('user_watchlist_user_idx', table_name='user_watchlist')
    op.drop_table('user_watchlist')
    op.drop_index('tickers_type_idx', table_name='tickers')
    op.drop_index('tickers_symbol_idx', table_name='tickers')
    op.drop_table('tickers')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    ticker_type.drop(op.get_bind(), checkfirst=True)
