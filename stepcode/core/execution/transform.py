# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Source-to-source rewrite that makes input() suspendable.

Learner scripts call input() as if it blocked until a line is typed. Inside
an asyncio task nothing may block, so before running a script we rewrite it:

1. Every direct ``input(...)`` call becomes ``await __stepcode_input__(...)``.
2. Every function that (transitively) calls input() becomes ``async def``.
   Which functions these are is a whole-program property: a function calling
   a helper that reads input must itself be converted, even if the helper is
   defined further down or the two are mutually recursive. The set is
   therefore computed as a fixed point before anything is rewritten.
3. Every call to a converted function is wrapped in ``await``, including
   bare expression statements such as ``ask_name()`` whose result is
   discarded.

The rewritten module is compiled with top-level await enabled, so calls at
module level can be awaited directly.

Example:
    >>> result = transform_source('name = input("Name? ")\\nprint(name)')
    >>> print(result.source)
    name = await __stepcode_input__('Name? ')
    print(name)
"""

import ast
import logging
from dataclasses import dataclass, field
from types import CodeType

from stepcode.core.execution.session import ExecutionError

logger = logging.getLogger(__name__)

INPUT_FUNCTION = "input"
INPUT_BRIDGE = "__stepcode_input__"

_NESTED_SCOPES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda, ast.ClassDef)
_ACCESSOR_DECORATORS = frozenset({"property", "cached_property", "setter", "getter", "deleter"})


class TransformError(ExecutionError):
    """Raised when a script cannot be rewritten for suspendable input."""

    pass


@dataclass
class TransformResult:
    """Result of rewriting one script.

    Attributes:
        tree: The (possibly rewritten) module tree. Line numbers refer to
            the original source.
        source: Regenerated source text; the original text when unchanged.
        code: Compiled code object, ready to execute.
        suspending: Names of functions converted to coroutines.
        changed: Whether any rewrite was applied.
    """

    tree: ast.Module
    source: str
    code: CodeType
    suspending: frozenset[str] = field(default_factory=frozenset)
    changed: bool = False


@dataclass
class _SuspendPlan:
    """Which calls must be awaited after the rewrite."""

    input_is_builtin: bool
    nodes: set[ast.FunctionDef] = field(default_factory=set)
    functions: set[str] = field(default_factory=set)
    methods: set[str] = field(default_factory=set)

    def is_input_call(self, call: ast.Call) -> bool:
        return (
            self.input_is_builtin
            and isinstance(call.func, ast.Name)
            and call.func.id == INPUT_FUNCTION
        )

    def is_suspending_call(self, call: ast.Call) -> bool:
        if isinstance(call.func, ast.Name):
            return call.func.id in self.functions
        if isinstance(call.func, ast.Attribute):
            return call.func.attr in self.methods
        return False

    def calls_suspending(self, function: ast.FunctionDef) -> bool:
        for node in _own_nodes(function):
            if isinstance(node, ast.Call) and (
                self.is_input_call(node) or self.is_suspending_call(node)
            ):
                return True
        return False

    def add(self, function: ast.FunctionDef, is_method: bool) -> None:
        if is_method and _is_implicitly_called(function):
            raise TransformError(
                f"line {function.lineno}: method '{function.name}' is called by Python "
                "itself and cannot wait for input"
            )
        self.nodes.add(function)
        if is_method:
            self.methods.add(function.name)
        else:
            self.functions.add(function.name)


def _own_nodes(function: ast.FunctionDef | ast.AsyncFunctionDef):
    """Yield the nodes of a function body without entering nested scopes."""
    stack: list[ast.AST] = list(function.body)
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, _NESTED_SCOPES):
            continue
        stack.extend(ast.iter_child_nodes(node))


def _is_generator(function: ast.FunctionDef) -> bool:
    return any(isinstance(node, (ast.Yield, ast.YieldFrom)) for node in _own_nodes(function))


def _decorator_name(decorator: ast.expr) -> str:
    if isinstance(decorator, ast.Call):
        decorator = decorator.func
    if isinstance(decorator, ast.Attribute):
        return decorator.attr
    if isinstance(decorator, ast.Name):
        return decorator.id
    return ""


def _is_implicitly_called(method: ast.FunctionDef) -> bool:
    """Check whether Python calls the method without an explicit call site.

    Dunder methods and property accessors have no call site that could be
    awaited.
    """
    if method.name.startswith("__") and method.name.endswith("__"):
        return True
    return any(
        _decorator_name(decorator) in _ACCESSOR_DECORATORS
        for decorator in method.decorator_list
    )


def _input_is_shadowed(tree: ast.Module) -> bool:
    """Check whether the script binds its own ``input`` name anywhere."""
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            if node.name == INPUT_FUNCTION:
                return True
        elif isinstance(node, ast.Name) and isinstance(node.ctx, ast.Store):
            if node.id == INPUT_FUNCTION:
                return True
        elif isinstance(node, ast.alias):
            if (node.asname or node.name) == INPUT_FUNCTION:
                return True
        elif isinstance(node, ast.arg) and node.arg == INPUT_FUNCTION:
            return True
    return False


def _collect_functions(tree: ast.Module) -> list[tuple[ast.FunctionDef, bool]]:
    """Collect every synchronous function definition and whether it is a method."""
    found: list[tuple[ast.FunctionDef, bool]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.ClassDef):
            for item in node.body:
                if isinstance(item, ast.FunctionDef):
                    found.append((item, True))
    methods = {id(function) for function, _ in found}
    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef) and id(node) not in methods:
            found.append((node, False))
    return found


def find_suspending_functions(tree: ast.Module) -> _SuspendPlan:
    """Compute the closure of functions that must become coroutines.

    A function suspends if its own body calls input() or any function
    already known to suspend. The scan repeats until a pass adds nothing,
    so definition order and mutual recursion do not matter.

    Args:
        tree: Parsed module.

    Returns:
        The suspend plan used by the rewriter.
    """
    plan = _SuspendPlan(input_is_builtin=not _input_is_shadowed(tree))
    if not plan.input_is_builtin:
        return plan

    functions = _collect_functions(tree)
    changed = True
    while changed:
        changed = False
        for function, is_method in functions:
            if function in plan.nodes:
                continue
            if plan.calls_suspending(function):
                plan.add(function, is_method)
                changed = True
    return plan


class _AwaitRewriter(ast.NodeTransformer):
    """Apply a suspend plan: async defs, bridged input calls, awaits."""

    def __init__(self, plan: _SuspendPlan) -> None:
        self._plan = plan
        self._scopes: list[str] = ["module"]
        self._already_awaited: set[int] = set()

    def _visit_scope(self, node: ast.AST, scope: str) -> ast.AST:
        self._scopes.append(scope)
        try:
            self.generic_visit(node)
        finally:
            self._scopes.pop()
        return node

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        if node not in self._plan.nodes:
            return self._visit_scope(node, "function")
        if _is_generator(node):
            raise TransformError(
                f"line {node.lineno}: generator '{node.name}' cannot wait for input"
            )
        converted = ast.AsyncFunctionDef(
            **{name: getattr(node, name) for name in node._fields}
        )
        ast.copy_location(converted, node)
        return self._visit_scope(converted, "async function")

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.AST:
        return self._visit_scope(node, "async function")

    def visit_Lambda(self, node: ast.Lambda) -> ast.AST:
        return self._visit_scope(node, "lambda")

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        return self._visit_scope(node, "class body")

    def visit_GeneratorExp(self, node: ast.GeneratorExp) -> ast.AST:
        return self._visit_scope(node, "generator expression")

    def visit_Await(self, node: ast.Await) -> ast.AST:
        if isinstance(node.value, ast.Call):
            self._already_awaited.add(id(node.value))
        self.generic_visit(node)
        return node

    def visit_Call(self, node: ast.Call) -> ast.AST:
        self.generic_visit(node)

        if self._plan.is_input_call(node):
            node.func = ast.copy_location(
                ast.Name(id=INPUT_BRIDGE, ctx=ast.Load()), node.func
            )
        elif not self._plan.is_suspending_call(node):
            return node

        if id(node) in self._already_awaited:
            return node

        scope = self._scopes[-1]
        if scope not in ("module", "async function"):
            raise TransformError(
                f"line {node.lineno}: input cannot be awaited inside a {scope}"
            )
        return ast.copy_location(ast.Await(value=node), node)


def _has_input_call(tree: ast.Module) -> bool:
    return any(
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == INPUT_FUNCTION
        for node in ast.walk(tree)
    )


def _compile(tree: ast.Module, filename: str) -> CodeType:
    try:
        return compile(tree, filename, "exec", flags=ast.PyCF_ALLOW_TOP_LEVEL_AWAIT)
    except (SyntaxError, ValueError) as e:
        raise TransformError(f"Rewritten script does not compile: {e}") from e


def transform_source(source: str, filename: str = "<main.py>") -> TransformResult:
    """Rewrite a script so that input() suspends instead of blocking.

    Scripts without input calls are returned unchanged.

    Args:
        source: Learner script.
        filename: Name used for compiled code and tracebacks.

    Returns:
        TransformResult with the compiled code.

    Raises:
        TransformError: If the script does not parse or uses input() where
            an await cannot be placed (lambda, class body, generator,
            dunder method or property).
    """
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise TransformError(f"Script does not parse: {e}") from e

    plan = find_suspending_functions(tree)
    if not plan.input_is_builtin or not _has_input_call(tree):
        return TransformResult(tree=tree, source=source, code=_compile(tree, filename))

    tree = _AwaitRewriter(plan).visit(tree)
    ast.fix_missing_locations(tree)

    suspending = frozenset(plan.functions | plan.methods)
    logger.debug(
        "Script rewritten: suspending=%s",
        ", ".join(sorted(suspending)) or "<module only>",
    )
    return TransformResult(
        tree=tree,
        source=ast.unparse(tree),
        code=_compile(tree, filename),
        suspending=suspending,
        changed=True,
    )
