from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
import os
import sys

# backend/ en sys.path para importar securesales
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_ROOT = os.path.dirname(BASE_DIR)
if BACKEND_ROOT not in sys.path:
	sys.path.insert(0, BACKEND_ROOT)

config = context.config

# Logging según alembic.ini
if config.config_file_name is not None:
	fileConfig(config.config_file_name)

# Metadatos: todos los modelos registrados en Base
from securesales.db import Base, _import_all_models  # type: ignore
from securesales.config import settings  # type: ignore

# La URL viene de Settings (DATABASE_URL), no del .ini
config.set_main_option("sqlalchemy.url", settings.database_url)

_import_all_models()
target_metadata = Base.metadata

def run_migrations_offline() -> None:
	url = config.get_main_option("sqlalchemy.url")
	context.configure(
		url=url,
		target_metadata=target_metadata,
		literal_binds=True,
		compare_type=True,
	)

	with context.begin_transaction():
		context.run_migrations()

def run_migrations_online() -> None:
	connectable = engine_from_config(
		config.get_section(config.config_ini_section, {}),
		prefix="sqlalchemy.",
		poolclass=pool.NullPool,
	)

	with connectable.connect() as connection:
		context.configure(
			connection=connection,
			target_metadata=target_metadata,
			compare_type=True,
		)

		with context.begin_transaction():
			context.run_migrations()

if context.is_offline_mode():
	run_migrations_offline()
else:
	run_migrations_online()
