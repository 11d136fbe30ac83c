"""Runtime configuration read from environment variables.

All settings have defaults suitable for local development; deployments
override them through the environment.
"""

import os
from pathlib import Path

# Application root holding tables/, forms/ and langs/
APP_ROOT = Path(os.environ.get("WIDGET_APP_ROOT", "."))

TABLES_DIR = os.environ.get("WIDGET_TABLES_DIR", "tables")
FORMS_DIR = os.environ.get("WIDGET_FORMS_DIR", "forms")

# Prepended to every path-derived widget ID
ID_PREFIX = os.environ.get("WIDGET_ID_PREFIX", "")

# First path segment after /api/ in synthesized component endpoints
API_NAMESPACE = os.environ.get("WIDGET_API_NAMESPACE", "__yao")

# Active locale (e.g. "zh-cn"); empty disables localization
LOCALE = os.environ.get("WIDGET_LOCALE", "")

# Worker threads used to compile definition files in one load pass
LOAD_WORKERS = int(os.environ.get("WIDGET_LOAD_WORKERS", "4"))
