#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Local credential management for the Aurora student records client.

This module handles storage and retrieval of the student's login using a
local file with appropriate permission hardening.
"""

import os
import json
import stat
import platform
from pathlib import Path
from typing import Optional, Dict

from .config import DATA_PATH
from .logger import setup_logging

logger = setup_logging()

# Local credentials file path
LOCAL_CREDENTIALS_FILE = DATA_PATH / 'local_credentials.json'

def load_local_credentials(path: Path = None) -> Optional[Dict[str, str]]:
    """
    Load local credentials from the local file.

    Returns:
        dict: {"student_id": "...", "password": "...", "semester_id": "..."}
        or None if not found/invalid
    """
    path = path or LOCAL_CREDENTIALS_FILE
    if not path.exists():
        return None

    if not check_file_permissions(path):
        logger.warning("Credentials file is readable by other users")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        # Don't expose file content
        logger.error(f"Error loading local credentials: {type(e).__name__}")
        return None

    if not isinstance(data, dict) or not data.get('student_id') or not data.get('password'):
        return None

    return {
        'student_id': data['student_id'],
        'password': data['password'],
        'semester_id': data.get('semester_id', '')
    }

def save_local_credentials(student_id: str, password: str, semester_id: str = '',
                           remember: bool = True, path: Path = None) -> bool:
    """
    Save credentials to the local file.

    Args:
        student_id: Student login id
        password: Login password
        semester_id: Registrar semester id
        remember: Whether to save credentials (default: True)

    Returns:
        bool: True if saved successfully, False otherwise
    """
    if not remember:
        return True

    path = path or LOCAL_CREDENTIALS_FILE
    data = {
        'student_id': student_id,
        'password': password,
        'semester_id': semester_id
    }
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Created owner-only (0600)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.error(f"Error saving local credentials: {type(e).__name__}")
        return False

    harden_file_permissions(path)
    return True

def delete_local_credentials(path: Path = None) -> bool:
    """
    Delete the local credentials file.

    Returns:
        bool: True if deleted successfully or file didn't exist, False on error
    """
    path = path or LOCAL_CREDENTIALS_FILE
    try:
        if path.exists():
            path.unlink()
        return True
    except OSError as e:
        logger.error(f"Error deleting local credentials: {type(e).__name__}")
        return False

def harden_file_permissions(file_path: Path):
    """Restrict the file to the current user (0600 on Unix-like systems)."""
    if platform.system() == 'Windows':
        # Without pywin32 there is no ACL control; the file stays as created
        return
    try:
        os.chmod(file_path, stat.S_IRUSR | stat.S_IWUSR)
    except OSError:
        logger.warning("Could not harden file permissions for credentials file")

def check_file_permissions(file_path: Path) -> bool:
    """
    Check if the credentials file has appropriate permissions.

    Returns:
        bool: True if permissions are acceptable, False otherwise
    """
    if platform.system() == 'Windows':
        return True
    try:
        mode = os.stat(file_path).st_mode
    except OSError:
        return False
    # Only the owner may have any access
    return (mode & (stat.S_IRWXG | stat.S_IRWXO)) == 0
