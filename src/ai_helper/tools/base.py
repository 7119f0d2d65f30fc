"""Declarative tool definitions.

Tool groups subclass :class:`BaseTools` and mark plain methods with
:func:`define_function`, describing each parameter with :func:`prop` and
:func:`item`::

    class GreetingTools(BaseTools):
        @define_function(
            "Say hello to someone",
            prop("name", "string", "The name to greet", required=True),
            prop("tags", "array", "Extra tags", items=item("string", "A tag")),
        )
        def greet(self, name: str, tags: list[str] | None = None) -> str:
            return f"Hello, {name}!"

When the subclass is created every marked method is compiled into a
:class:`Tool` value object: a JSON schema for the model plus a handler that
instantiates the group and calls the method. Capabilities discovered at
runtime (for example from an MCP server) go through
:class:`ParameterBuilder` instead, which can rebuild the same parameter tree
from an existing JSON schema.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from ..exceptions import ToolDefinitionError, ToolValidationError
from ..utils.text import snake_case

PARAMETER_TYPES = ("string", "integer", "number", "boolean", "object", "array")

# name of the parameter synthesized for schemas that declare no properties
PLACEHOLDER_PARAMETER = "dummy"


@dataclass
class ToolParameter:
    """A node of a tool's parameter tree.

    ``object`` nodes carry ``children``; ``array`` nodes carry exactly one
    ``items`` node. Item nodes have no name.
    """
    name: str | None
    type: str
    description: str = ""
    required: bool = False
    enum: list[Any] | None = None
    children: list["ToolParameter"] | None = None
    items: "ToolParameter | None" = None
    # object nodes rebuilt from a schema without a "required" key omit it when empty
    declares_required: bool = field(default=True, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.type not in PARAMETER_TYPES:
            raise ToolDefinitionError(
                f"Unsupported parameter type '{self.type}' for '{self.name}'. "
                f"Expected one of: {', '.join(PARAMETER_TYPES)}"
            )
        if self.type == "object" and self.children is None:
            self.children = []
        if self.type != "object" and self.children:
            raise ToolDefinitionError(f"Only object parameters can have children: '{self.name}'")
        if self.type != "array" and self.items is not None:
            raise ToolDefinitionError(f"Only array parameters can have items: '{self.name}'")

    def to_schema(self) -> dict[str, Any]:
        """Compile this node into a JSON-Schema fragment."""
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.type == "object":
            schema.update(_compile_properties(self.children or [], self.declares_required))
        elif self.type == "array":
            if self.items is None:
                raise ToolDefinitionError(f"Array parameter '{self.name}' has no item definition")
            schema["items"] = self.items.to_schema()
        return schema


def prop(
    name: str,
    type: str,
    description: str = "",
    required: bool = False,
    enum: list[Any] | None = None,
    children: list[ToolParameter] | None = None,
    items: ToolParameter | None = None,
) -> ToolParameter:
    """Declare a named parameter.

    Raises:
        ToolDefinitionError: If an array is declared without ``items``.
    """
    if type == "array" and items is None:
        raise ToolDefinitionError(f"Array parameter '{name}' requires an item definition")
    if items is not None and items.name is not None:
        raise ToolDefinitionError(f"Item definition of '{name}' must not be named")
    return ToolParameter(
        name=name,
        type=type,
        description=description,
        required=required,
        enum=list(enum) if enum is not None else None,
        children=list(children) if children is not None else None,
        items=items,
    )


def item(
    type: str,
    description: str = "",
    enum: list[Any] | None = None,
    children: list[ToolParameter] | None = None,
    items: ToolParameter | None = None,
) -> ToolParameter:
    """Declare the element type of an array parameter."""
    if type == "array" and items is None:
        raise ToolDefinitionError("Nested array items require an item definition")
    return ToolParameter(
        name=None,
        type=type,
        description=description,
        enum=list(enum) if enum is not None else None,
        children=list(children) if children is not None else None,
        items=items,
    )


def _compile_properties(params: list[ToolParameter], declares_required: bool = True) -> dict[str, Any]:
    names = [p.name for p in params]
    if len(set(names)) != len(names):
        raise ToolDefinitionError(f"Duplicate parameter names: {names}")
    compiled: dict[str, Any] = {"properties": {p.name: p.to_schema() for p in params}}
    required = [p.name for p in params if p.required]
    if required or declares_required:
        compiled["required"] = required
    return compiled


def compile_schema(
    params: list[ToolParameter] | tuple[ToolParameter, ...],
    declares_required: bool = True,
) -> dict[str, Any] | None:
    """Compile a parameter tree into a JSON-Schema object.

    Every object level lists ``required``, unless ``declares_required`` is
    false and no property is required.

    Returns:
        The schema, or None for functions that take no arguments.
    """
    if not params:
        return None
    return {"type": "object", **_compile_properties(list(params), declares_required)}


@dataclass(frozen=True)
class Tool:
    """A model-callable function.

    Attributes:
        name: Function name presented to the model.
        description: What the function does.
        parameters: JSON schema of the arguments, None when it takes none.
        handler: Callable invoked with the model's keyword arguments.
        group: Normalized name of the tool group the function belongs to.
    """
    name: str
    description: str
    parameters: dict[str, Any] | None
    handler: Callable[..., Any] = field(repr=False, compare=False)
    group: str = ""

    @property
    def qualified_name(self) -> str:
        """Name unique across tool groups: ``<group>__<name>``."""
        return f"{self.group}__{self.name}" if self.group else self.name

    def validate(self, arguments: dict[str, Any]) -> None:
        """Check required arguments and enum constraints of the top level.

        Raises:
            ToolValidationError: If any check fails.
        """
        if not self.parameters:
            return
        errors = []
        properties = self.parameters.get("properties", {})
        for required in self.parameters.get("required", []):
            if arguments.get(required) is None:
                errors.append(f"missing required argument '{required}'")
        for key, value in arguments.items():
            allowed = properties.get(key, {}).get("enum")
            if allowed is not None and value is not None and value not in allowed:
                errors.append(f"'{key}' must be one of {allowed}, got {value!r}")
        if errors:
            raise ToolValidationError(self.name, errors)

    def execute(self, **kwargs: Any) -> Any:
        """Validate the arguments and run the function."""
        self.validate(kwargs)
        return self.handler(**kwargs)

    def to_schema(self) -> dict[str, Any]:
        """Return the flat function-calling record for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.qualified_name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class FunctionSpec:
    """Declaration attached to a method by :func:`define_function`."""
    name: str
    description: str
    params: tuple[ToolParameter, ...]


def define_function(
    description: str,
    *params: ToolParameter,
    name: str | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a :class:`BaseTools` method as a model-callable function.

    Args:
        description: Description shown to the model.
        *params: Parameter declarations built with :func:`prop`.
        name: Function name, defaults to the method name.
    """
    # compile eagerly so malformed trees fail at class definition time
    compile_schema(params)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        func.__tool_function__ = FunctionSpec(  # type: ignore[attr-defined]
            name=name or func.__name__,
            description=description,
            params=tuple(params),
        )
        return func

    return decorator


def _method_dispatcher(owner: type["BaseTools"], method_name: str) -> Callable[..., Any]:
    def dispatch(**kwargs: Any) -> Any:
        return getattr(owner(), method_name)(**kwargs)

    dispatch.__name__ = method_name
    dispatch.__qualname__ = f"{owner.__name__}.{method_name}"
    return dispatch


class BaseTools:
    """Base class for a group of tools.

    Subclasses are instantiated without arguments every time one of their
    functions runs.
    """

    _tool_classes: list[Tool] = []
    _function_registry: dict[str, Tool] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        group = snake_case(cls.__name__)

        # base classes first so subclasses can override inherited functions
        declared: dict[str, tuple[str, FunctionSpec]] = {}
        for klass in reversed(cls.__mro__):
            for attr_name, attr in vars(klass).items():
                spec = getattr(attr, "__tool_function__", None)
                if isinstance(spec, FunctionSpec):
                    declared[spec.name] = (attr_name, spec)

        cls._tool_classes = [
            Tool(
                name=spec.name,
                description=spec.description,
                parameters=compile_schema(spec.params),
                handler=_method_dispatcher(cls, attr_name),
                group=group,
            )
            for attr_name, spec in declared.values()
        ]
        cls._function_registry = {tool.qualified_name: tool for tool in cls._tool_classes}

    @classmethod
    def tool_classes(cls) -> list[Tool]:
        """Tools of this group in declaration order."""
        return list(cls._tool_classes)

    @classmethod
    def function_registry(cls) -> dict[str, Tool]:
        """Tools of this group keyed by qualified name."""
        return dict(cls._function_registry)

    @classmethod
    def function_schemas(cls) -> list[dict[str, Any]]:
        """All functions of this group in the flat function-calling format."""
        return [tool.to_schema() for tool in cls._tool_classes]


class ParameterBuilder:
    """Imperative builder for parameter trees.

    The root builder collects top-level parameters in :attr:`params`.
    :meth:`property` returns a builder scoped to the new parameter, so object
    properties can receive children and array properties an item::

        builder = ParameterBuilder()
        query = builder.property("query", "object", "Search query", required=True)
        query.property("text", "string", "Free text", required=True)
        builder.property("ids", "array", "Issue ids").item("integer", "An id")
    """

    def __init__(self, node: ToolParameter | None = None):
        self._node = node
        self.params: list[ToolParameter] = []
        self.declares_required = True

    def _target(self) -> list[ToolParameter]:
        if self._node is None:
            return self.params
        if self._node.type == "object":
            return self._node.children  # type: ignore[return-value]
        raise ToolDefinitionError(
            f"Cannot add properties to parameter '{self._node.name}' of type {self._node.type}"
        )

    def property(
        self,
        name: str,
        type: str,
        description: str = "",
        required: bool = False,
        enum: list[Any] | None = None,
    ) -> "ParameterBuilder":
        """Add a property and return a builder scoped to it."""
        node = ToolParameter(
            name=name,
            type=type,
            description=description,
            required=required,
            enum=list(enum) if enum is not None else None,
        )
        self._target().append(node)
        return ParameterBuilder(node)

    def item(
        self,
        type: str,
        description: str = "",
        enum: list[Any] | None = None,
    ) -> "ParameterBuilder":
        """Set the item definition of the current array parameter."""
        if self._node is None or self._node.type != "array":
            raise ToolDefinitionError("item() is only valid inside an array parameter")
        if self._node.items is not None:
            raise ToolDefinitionError(f"Array parameter '{self._node.name}' already has an item")
        node = ToolParameter(
            name=None,
            type=type,
            description=description,
            enum=list(enum) if enum is not None else None,
        )
        self._node.items = node
        return ParameterBuilder(node)

    def from_json_schema(self, schema: dict[str, Any] | None) -> "ParameterBuilder":
        """Rebuild the parameter tree described by a JSON schema.

        Walks ``properties``, ``required``, ``items`` and ``enum``. At the
        root, a schema without properties gets a single optional placeholder
        property so that providers requiring at least one parameter accept it.
        """
        schema = schema or {}
        properties = schema.get("properties") or {}
        if not isinstance(properties, dict):
            raise ToolDefinitionError(f"'properties' must be an object, got {type(properties).__name__}")
        required = set(schema.get("required") or [])
        if self._node is None:
            self.declares_required = "required" in schema
        else:
            self._node.declares_required = "required" in schema

        for name, spec in properties.items():
            spec = spec if isinstance(spec, dict) else {}
            child = self.property(
                name,
                _json_type(spec),
                spec.get("description", ""),
                required=name in required,
                enum=spec.get("enum"),
            )
            child._fill_from_json(spec)

        if self._node is None and not self.params:
            self.property(
                PLACEHOLDER_PARAMETER,
                "string",
                "Dummy property. No need to specify.",
            )
        return self

    def _fill_from_json(self, spec: dict[str, Any]) -> None:
        assert self._node is not None
        if self._node.type == "object":
            self.from_json_schema(spec)
        elif self._node.type == "array":
            item_spec = spec.get("items")
            item_spec = item_spec if isinstance(item_spec, dict) else {"type": "string"}
            self.item(
                _json_type(item_spec),
                item_spec.get("description", ""),
                enum=item_spec.get("enum"),
            )._fill_from_json(item_spec)

    def schema(self) -> dict[str, Any] | None:
        """Compile the collected parameters."""
        if self._node is not None:
            return self._node.to_schema()
        return compile_schema(self.params, self.declares_required)

    def build_tool(
        self,
        name: str,
        description: str,
        handler: Callable[..., Any],
        group: str = "",
    ) -> Tool:
        """Create a :class:`Tool` from the collected parameters."""
        return Tool(
            name=name,
            description=description,
            parameters=self.schema(),
            handler=handler,
            group=group,
        )


def _json_type(spec: dict[str, Any]) -> str:
    declared = spec.get("type")
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    if declared in PARAMETER_TYPES:
        return declared
    if "properties" in spec:
        return "object"
    if "items" in spec:
        return "array"
    return "string"
