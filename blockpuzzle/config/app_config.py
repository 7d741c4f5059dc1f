# File: blockpuzzle/config/app_config.py
APP_NAME: str = "blockpuzzle"
