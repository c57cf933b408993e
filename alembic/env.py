# alembic/env.py

from logging.config import fileConfig
from sqlalchemy import engine_from_config
from sqlalchemy.pool import NullPool
from alembic import context

# Настройки читают .env, поэтому URL базы берем оттуда, а не из alembic.ini
from wishbucket.core.config import settings
from wishbucket.db.session import Base
# Все модели должны быть импортированы, чтобы попасть в метаданные
from wishbucket.models.user import User
from wishbucket.models.referral import Referral
from wishbucket.models.notification import Notification
from wishbucket.models.friend import Friend
from wishbucket.models.wishlist import Wishlist, WishlistItem
from wishbucket.models.crowdfunding import Crowdfunding, CrowdfundingContributor
from wishbucket.models.gift_hint import GiftHint
from wishbucket.models.secret_santa import SecretSanta, SecretSantaParticipant

target_metadata = Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        {"sqlalchemy.url": settings.DATABASE_URL},
        prefix="sqlalchemy.",
        poolclass=NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
