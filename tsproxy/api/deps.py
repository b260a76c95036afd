from __future__ import annotations

from fastapi import Request

from tsproxy.common.config import Settings
from tsproxy.proxy.search_service import SearchProxy


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_proxy(request: Request) -> SearchProxy:
    return request.app.state.proxy
