"""Post-generation hooks: client, service and workflow mocks."""

from gateway_codegen.hooks.base import HookResult, PostGenHook
from gateway_codegen.hooks.client_mock import ClientMockHook
from gateway_codegen.hooks.reflect import (
    InterfaceReflector,
    MethodDescriptor,
    StaticReflector,
    SubprocessReflector,
)
from gateway_codegen.hooks.service_mock import ServiceMockHook
from gateway_codegen.hooks.workflow_mock import WorkflowMockHook

__all__ = [
    "ClientMockHook",
    "HookResult",
    "InterfaceReflector",
    "MethodDescriptor",
    "PostGenHook",
    "ServiceMockHook",
    "StaticReflector",
    "SubprocessReflector",
    "WorkflowMockHook",
]
