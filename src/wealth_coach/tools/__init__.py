"""Tools for the financial advisory agent."""

from .calculators import (
    analyze_portfolio_allocation,
    calculate_debt_payoff,
    calculate_retirement_needs,
    project_future_value,
)
from .catalog import (
    MUTATING_TOOLS,
    TOOL_CATALOG,
    TOOLS_BY_NAME,
    ToolDefinition,
    llm_tools,
    parse_tool_call,
    parse_tool_calls,
    run_informational_tool,
)

__all__ = [
    "MUTATING_TOOLS",
    "TOOL_CATALOG",
    "TOOLS_BY_NAME",
    "ToolDefinition",
    "analyze_portfolio_allocation",
    "calculate_debt_payoff",
    "calculate_retirement_needs",
    "llm_tools",
    "parse_tool_call",
    "parse_tool_calls",
    "project_future_value",
    "run_informational_tool",
]
