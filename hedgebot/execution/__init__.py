"""
Execution package.

This package contains the order gateway that implements the exchange port.
"""

from hedgebot.execution.execution_gateway import ExecutionGateway, ExecutionGatewayConfig

__all__ = [
    "ExecutionGateway",
    "ExecutionGatewayConfig",
]
