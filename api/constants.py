"""
API Constants and Configuration
"""

# API Version
API_VERSION = "v1"

# 当前版本（与 pyproject.toml 保持一致）
APP_VERSION = "0.1.0"

# Input limits
MAX_ID_LENGTH = 64
MAX_URL_LENGTH = 2048
MAX_KEYWORD_LENGTH = 100
