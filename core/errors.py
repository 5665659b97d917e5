"""GLOBEBOARD FILE PURPOSE
Purpose: domain error taxonomy shared by lifecycle, providers and persistence.
Hot path: no.
Feature flags: none.
Failure mode: every error maps to one deterministic HTTP status.
"""

from __future__ import annotations


class DashboardError(Exception):
    status_code = 500
    public_detail: str | None = None

    def detail(self) -> str:
        return self.public_detail or str(self) or self.__class__.__name__


class ValidationError(DashboardError):
    status_code = 400


class Unauthorized(DashboardError):
    status_code = 401


class KeyNotAccepted(DashboardError):
    status_code = 406


class NotFoundError(DashboardError):
    status_code = 404


class ConflictError(DashboardError):
    status_code = 409


class PersistenceError(DashboardError):
    status_code = 500


class UpstreamError(DashboardError):
    # Callers are never told which upstream/feature failed.
    status_code = 502
    public_detail = "error getting country information"


class UpstreamUnavailable(UpstreamError):
    pass


class UpstreamMalformedResponse(UpstreamError):
    pass


class UpstreamNotFound(UpstreamError):
    pass
