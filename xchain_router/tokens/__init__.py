"""Logical token resolution across sources."""

from xchain_router.tokens.resolver import LogicalTokenResolver, Resolution, ResolutionStatus

__all__ = ["LogicalTokenResolver", "Resolution", "ResolutionStatus"]
