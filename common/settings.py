"""Shared application settings read from environment variables."""

import os

PORT: int = int(os.environ.get('PORT', '3000'))
DATA_DIR: str = os.environ.get('DATA_DIR', os.path.join('assets', 'pnc'))
VISITOR_LOG_PATH: str = os.environ.get(
    'VISITOR_LOG_PATH', os.path.join(DATA_DIR, 'index.csv')
)
RETENTION_DAYS: int = int(os.environ.get('RETENTION_DAYS', '30'))
LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()
