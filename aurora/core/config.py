#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Core configuration module for the Aurora student records client.

This module provides centralized configuration management including:
- Environment variable loading
- Gateway and backend endpoints
- Request pacing constants
- Path management
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Base directory for the package
BASE_DIR = Path(__file__).parent.parent

def load_environment():
    """Load environment variables from .env file."""
    # Try to find .env file in several possible locations
    possible_paths = [
        BASE_DIR / '.env',           # Package root
        BASE_DIR.parent / '.env',    # Project root
        Path('.env')                 # Current working directory
    ]

    for path in possible_paths:
        if path.exists():
            load_dotenv(dotenv_path=path, override=True)
            break

# Load environment on import
load_environment()

# Environment variables with defaults
DEBUG_MODE = os.getenv('DEBUG_MODE', 'False').lower() == 'true'
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
DATA_PATH = Path(os.getenv('DATA_PATH', BASE_DIR / 'data' / 'records'))

# Credentials
API_KEYS = {
    'student_id': os.getenv('AURORA_ID', ''),
    'password': os.getenv('AURORA_PASSWORD', ''),
    'semester_id': os.getenv('AURORA_SEMESTER', '')
}

# Network
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '15'))

# The registrar silently refuses exam detail requests issued too quickly
COURTESY_DELAY_MS = int(os.getenv('COURTESY_DELAY_MS', '500'))

# Endpoints (all reached through the VPN gateway)
GATEWAY_URL = os.getenv('GATEWAY_URL', 'https://webvpn.neu.edu.cn')
SSO_LOGIN_URL = os.getenv(
    'SSO_LOGIN_URL',
    'https://pass.neu.edu.cn/tpass/login?service=https%3A%2F%2Fwebvpn.neu.edu.cn%2Flogin%3Fcas_login%3Dtrue'
)
SSO_LOGIN_MARKER = '/tpass/login'
GATEWAY_COOKIE_PREFIX = 'wengine_vpn_ticket'

REGISTRAR_URL = os.getenv(
    'REGISTRAR_URL',
    GATEWAY_URL + '/http/77726476706e69737468656265737421a2a618d270267b5b6d1f8ba/eams'
)
PORTAL_URL = os.getenv(
    'PORTAL_URL',
    GATEWAY_URL + '/https/77726476706e69737468656265737421e0f85388263c2d61791d85ae'
)

REGISTRAR_PATHS = {
    'home': '/homeExt.action',
    'course_table_index': '/courseTableForStd.action',
    'course_table': '/courseTableForStd!courseTable.action',
    'gpa': '/teach/grade/course/person!historyCourseGrade.action?projectType=MAJOR',
    'exam_index': '/stdExamTable.action',
    'exam_detail': '/stdExamTable!examTable.action',
    'logout': '/logoutExt.action'
}

PORTAL_PATHS = {
    'home': '/tp_up/view?m=up',
    'info': '/tp_up/sys/uacm/profile/getUserInfo',
    'network': '/tp_up/up/subgroup/getWiFiInfo',
    'card': '/tp_up/up/subgroup/getCardMoney',
    'library': '/tp_up/up/subgroup/getLibraryInfo',
    'logout': '/tp_up/logout'
}

HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en-US;q=0.8,en;q=0.7",
    "Upgrade-Insecure-Requests": "1",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36"
}

# Logging configuration
def get_log_level():
    """Convert string log level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    return level_map.get(LOG_LEVEL.upper(), logging.INFO)

from .logger import setup_logging
logger = setup_logging(logging.DEBUG if DEBUG_MODE else get_log_level())
