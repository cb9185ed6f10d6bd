"""Shared fixtures for the test suite."""

import json
import os
import pwd
from unittest.mock import MagicMock

import requests


def fake_user(home, name="core"):
    """A pwd entry owned by the current process, living under home."""
    return pwd.struct_passwd((name, "x", os.getuid(), os.getgid(), "", str(home), "/bin/sh"))


def response(status=200, text=""):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    resp.json.side_effect = lambda: json.loads(text)
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


def url_map(routes):
    """side_effect for requests.get: serve routes, 404 for anything else."""

    def _get(url, headers=None, timeout=None):
        if url in routes:
            value = routes[url]
            if isinstance(value, Exception):
                raise value
            if isinstance(value, tuple):
                return response(*value)
            return response(200, value)
        return response(404, "")

    return _get
