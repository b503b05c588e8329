"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from debtplan_gateway.infrastructure.clients.insight import InsightClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_insight_client() -> InsightClient:
    """Provide AI insight client instance"""
    return InsightClient()
