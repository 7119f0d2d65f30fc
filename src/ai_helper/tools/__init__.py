"""Tool definitions exposed to the model.

Tool groups subclass BaseTools and declare functions with define_function.
"""

from .base import (
    BaseTools,
    ParameterBuilder,
    Tool,
    ToolParameter,
    compile_schema,
    define_function,
    item,
    prop,
)

__all__ = [
    "BaseTools",
    "ParameterBuilder",
    "Tool",
    "ToolParameter",
    "compile_schema",
    "define_function",
    "item",
    "prop",
]
