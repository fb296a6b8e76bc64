# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""MCP server assembled from binding records.

:class:`GeneratedServer` is what every generated ``server.py`` instantiates.
It registers protocol handlers only for the capability families it actually
has bindings for, so a module with only tools never advertises prompts or
resources.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import functools
import json
from typing import TYPE_CHECKING, Annotated, Any

import anyio
from mcp import types
from mcp.server.lowlevel.server import NotificationOptions, Server
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, BeforeValidator, ValidationError, create_model

from .adapters import (
    coerce_call_tool_result,
    normalize_list_entry,
    normalize_prompt_result,
    normalize_resource_result,
    normalize_tool_result,
    split_arguments,
)
from .bindings import PromptBinding, ResourceBinding, ToolBinding
from .subscriptions import SubscriptionManager
from .uri_template import UriTemplate
from ..utils import get_logger, maybe_await, maybe_await_with_args
from ..utils.schema import SchemaEnvelope


if TYPE_CHECKING:  # pragma: no cover - typing only
    from anyio.abc import ObjectReceiveStream, ObjectSendStream
    from mcp.server.models import InitializationOptions


class GeneratedServer(Server[Any, Any]):
    """Low-level MCP server driven by tool, prompt, and resource bindings."""

    def __init__(
        self,
        name: str,
        *,
        version: str | None = "1.0.0",
        instructions: str | None = None,
        tools: Iterable[ToolBinding] = (),
        prompts: Iterable[PromptBinding] = (),
        resources: Iterable[ResourceBinding] = (),
    ) -> None:
        super().__init__(name, version=version, instructions=instructions)
        self._logger = get_logger(f"docmcp.server.{name}")

        self._tools: dict[str, ToolBinding] = {binding.name: binding for binding in tools}
        self._envelopes: dict[str, SchemaEnvelope] = {
            binding.name: SchemaEnvelope(schema=binding.output_schema, wrap_field=binding.wrap_field)
            for binding in self._tools.values()
            if binding.output_schema is not None and not binding.passthrough
        }

        self._prompts: dict[str, PromptBinding] = {binding.name: binding for binding in prompts}
        self._prompt_models: dict[str, type[BaseModel]] = {
            binding.name: _prompt_argument_model(binding) for binding in self._prompts.values()
        }

        self._resources: list[ResourceBinding] = list(resources)
        self._static: dict[str, ResourceBinding] = {
            binding.uri: binding for binding in self._resources if not binding.templated
        }
        self._templates: list[tuple[UriTemplate, ResourceBinding]] = [
            (UriTemplate(binding.uri), binding) for binding in self._resources if binding.templated
        ]

        self.subscriptions = SubscriptionManager(logger=self._logger)

        # //////////////////////////////////////////////////////////////////
        # Register handlers per capability family
        # //////////////////////////////////////////////////////////////////

        if self._tools:
            self._register_tools()
        if self._prompts:
            self._register_prompts()
        if self._resources:
            self._register_resources()

    # //////////////////////////////////////////////////////////////////
    # Introspection
    # //////////////////////////////////////////////////////////////////

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    @property
    def prompt_names(self) -> list[str]:
        return list(self._prompts)

    @property
    def resource_names(self) -> list[str]:
        return [binding.name for binding in self._resources]

    @property
    def supports_subscriptions(self) -> bool:
        return any(binding.subscribable for binding in self._resources)

    def get_capabilities(
        self, notification_options: NotificationOptions, experimental_capabilities: dict[str, dict[str, Any]]
    ) -> types.ServerCapabilities:
        caps = super().get_capabilities(notification_options, experimental_capabilities)
        if caps.resources is not None:
            caps.resources.subscribe = self.supports_subscriptions
        return caps

    # //////////////////////////////////////////////////////////////////
    # Lifecycle
    # //////////////////////////////////////////////////////////////////

    async def run(
        self,
        read_stream: ObjectReceiveStream[Any],
        write_stream: ObjectSendStream[Any],
        initialization_options: InitializationOptions,
        raise_exceptions: bool = False,
        stateless: bool = False,
    ) -> None:
        """Serve one session; subscription tasks live exactly as long as it does."""
        async with anyio.create_task_group() as tg:
            self.subscriptions.attach(tg)
            try:
                await super().run(read_stream, write_stream, initialization_options, raise_exceptions, stateless)
            finally:
                self.subscriptions.stop_all()
                self.subscriptions.detach()
                tg.cancel_scope.cancel()

    # //////////////////////////////////////////////////////////////////
    # Tools
    # //////////////////////////////////////////////////////////////////

    def _register_tools(self) -> None:
        @self.list_tools()
        async def _list_tools() -> list[types.Tool]:
            return [
                types.Tool(
                    name=binding.name,
                    description=binding.description or None,
                    inputSchema=binding.input_schema,
                    outputSchema=None if binding.passthrough else binding.output_schema,
                )
                for binding in self._tools.values()
            ]

        @self.call_tool(validate_input=True)
        async def _call_tool(name: str, arguments: dict[str, Any] | None) -> Any:
            return await self._execute_tool(name, arguments or {})

    async def _execute_tool(self, name: str, arguments: Mapping[str, Any]) -> Any:
        binding = self._tools.get(name)
        if binding is None:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Unknown tool: {name}"))

        self._logger.debug("Calling tool %s", name)
        args, kwargs = split_arguments(binding.fn, arguments)
        result = await maybe_await_with_args(binding.fn, *args, **kwargs)
        if binding.passthrough:
            return coerce_call_tool_result(result)
        return normalize_tool_result(result, self._envelopes.get(name))

    async def invoke_tool(self, name: str, **arguments: Any) -> types.CallToolResult:
        """Call a tool directly, bypassing the protocol layer."""
        outcome = await self._execute_tool(name, arguments)
        if isinstance(outcome, types.CallToolResult):
            return outcome
        content, structured = outcome
        return types.CallToolResult(content=content, structuredContent=structured)

    # //////////////////////////////////////////////////////////////////
    # Prompts
    # //////////////////////////////////////////////////////////////////

    def _register_prompts(self) -> None:
        @self.list_prompts()
        async def _list_prompts() -> list[types.Prompt]:
            return [
                types.Prompt(
                    name=binding.name,
                    description=binding.description or None,
                    arguments=[
                        types.PromptArgument(name=arg.name, description=arg.description, required=arg.required)
                        for arg in binding.arguments
                    ],
                )
                for binding in self._prompts.values()
            ]

        @self.get_prompt()
        async def _get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
            return await self.invoke_prompt(name, arguments)

    async def invoke_prompt(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.GetPromptResult:
        binding = self._prompts.get(name)
        if binding is None:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Unknown prompt: {name}"))

        try:
            validated = self._prompt_models[name].model_validate(dict(arguments or {}))
        except ValidationError as exc:
            message = f"Invalid arguments for prompt {name}: {exc.errors(include_url=False)}"
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=message)) from exc

        args, kwargs = split_arguments(binding.fn, validated.model_dump(exclude_unset=True))
        result = await maybe_await_with_args(binding.fn, *args, **kwargs)
        return normalize_prompt_result(result, description=binding.description)

    # //////////////////////////////////////////////////////////////////
    # Resources
    # //////////////////////////////////////////////////////////////////

    def _register_resources(self) -> None:
        @self.list_resources()
        async def _list_resources() -> list[types.Resource]:
            return await self.list_resource_entries()

        @self.list_resource_templates()
        async def _list_templates() -> list[types.ResourceTemplate]:
            return [
                types.ResourceTemplate(
                    uriTemplate=binding.uri,
                    name=binding.name,
                    description=binding.description or None,
                    mimeType=binding.mime_type,
                )
                for _, binding in self._templates
            ]

        self.request_handlers[types.ReadResourceRequest] = self._handle_read_resource

        if self.supports_subscriptions:

            @self.subscribe_resource()
            async def _subscribe(uri: Any) -> None:
                await self.subscribe_current(str(uri))

            @self.unsubscribe_resource()
            async def _unsubscribe(uri: Any) -> None:
                await self.subscriptions.unsubscribe(str(uri))

    async def _handle_read_resource(self, request: types.ReadResourceRequest) -> types.ServerResult:
        return types.ServerResult(await self.read_resource_uri(str(request.params.uri)))

    async def list_resource_entries(self) -> list[types.Resource]:
        """Static resources followed by the enumerated instances of templates."""
        entries = [
            types.Resource(
                uri=binding.uri,
                name=binding.name,
                description=binding.description or None,
                mimeType=binding.mime_type,
            )
            for binding in self._static.values()
        ]
        for _, binding in self._templates:
            if binding.ops.list is None:
                continue
            items = await maybe_await(binding.ops.list)
            entries.extend(normalize_list_entry(item, binding.mime_type) for item in items or ())
        return entries

    async def read_resource_uri(self, uri: str) -> types.ReadResourceResult:
        binding, values = self._resolve(uri)
        args, kwargs = split_arguments(binding.ops.read, values)
        payload = await maybe_await_with_args(binding.ops.read, *args, **kwargs)
        return normalize_resource_result(uri, binding.mime_type, payload)

    async def subscribe_current(self, uri: str) -> bool:
        """Subscribe the session of the current request to *uri*.

        Values matched from a URI template are bound to the subscribe hook by
        name, the same way reads receive them.
        """
        binding, values = self._resolve(uri)
        if not binding.subscribable or binding.subscription is None or binding.ops.subscribe is None:
            raise McpError(
                types.ErrorData(code=types.INVALID_PARAMS, message=f"Resource does not support subscriptions: {uri}")
            )

        hook = binding.ops.subscribe
        args, kwargs = split_arguments(hook, values)
        source = functools.partial(hook, *args, **kwargs)
        session = self.request_context.session

        async def _notify(updated: str) -> None:
            params = types.ResourceUpdatedNotificationParams(uri=updated)  # type: ignore[arg-type]
            notification = types.ResourceUpdatedNotification(method="notifications/resources/updated", params=params)
            await session.send_notification(types.ServerNotification(notification))

        return await self.subscriptions.subscribe(
            uri, mode=binding.subscription, source=source, notify=_notify
        )

    def _resolve(self, uri: str) -> tuple[ResourceBinding, dict[str, str]]:
        for candidate in (uri, uri.rstrip("/")):
            binding = self._static.get(candidate)
            if binding is not None:
                return binding, {}
        for template, binding in self._templates:
            values = template.match(uri)
            if values is not None:
                return binding, values
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=f"Resource not found: {uri}"))


# ---------------------------------------------------------------------------
# Prompt argument validation
# ---------------------------------------------------------------------------


def _decode_json(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


_ARGUMENT_TYPES: dict[str, Any] = {
    "string": str,
    "number": int | float,
    "boolean": bool,
    "array": Annotated[list[Any], BeforeValidator(_decode_json)],
    "object": Annotated[dict[str, Any], BeforeValidator(_decode_json)],
}


def _prompt_argument_model(binding: PromptBinding) -> type[BaseModel]:
    fields: dict[str, Any] = {}
    for arg in binding.arguments:
        annotation = _ARGUMENT_TYPES.get(arg.kind, str)
        fields[arg.name] = (annotation, ...) if arg.required else (annotation | None, None)
    return create_model(f"{_model_name(binding.name)}PromptArguments", **fields)


def _model_name(name: str) -> str:
    return "".join(part.capitalize() for part in name.replace("-", "_").split("_")) or "Prompt"


__all__ = ["GeneratedServer"]
