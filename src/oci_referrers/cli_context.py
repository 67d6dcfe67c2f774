"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like registry options
and the registry instance, avoiding global state and enabling proper
dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .settings import ExplicitAuth, RegistryOptions, create_options_from_env
from .storage.oci_registry import OciRegistry
from .storage.registry_factory import make_registry


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Manages application-level dependencies (options, registry) that are
    initialized once and shared across a CLI command execution.
    """
    options: RegistryOptions
    _registry: Optional[OciRegistry] = None

    @classmethod
    def from_env(cls, *, username: Optional[str] = None, password: Optional[str] = None,
                 insecure: bool = False) -> CLIContext:
        """
        Create CLI context from environment variables and command-line overrides.

        Explicit ``username``/``password`` take precedence over the
        environment; ``insecure`` can only switch plain HTTP on.

        Returns:
            CLIContext with options loaded from environment
        """
        options = create_options_from_env()

        if username or password:
            if not (username and password):
                raise ValueError("--username and --password must be given together")
            options = replace(options, auth=ExplicitAuth(username=username, password=password))

        if insecure:
            options = replace(options, transport=replace(options.transport, insecure=True))

        return cls(options=options)

    @property
    def registry(self) -> OciRegistry:
        """
        Get or create registry instance (lazy initialization).

        Returns:
            OciRegistry implementation selected by make_registry
        """
        if self._registry is None:
            self._registry = make_registry(self.options)
        return self._registry
