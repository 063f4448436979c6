"""Generator Protocol: the single generation capability every model call goes through."""

from typing import Any, Protocol


class Generator(Protocol):
    """Structural interface satisfied by any text-generation backend.

    Timeouts and retries belong to the implementation; a call that ultimately
    fails raises instead of returning a placeholder.
    """

    async def complete(
        self,
        system_prompt: str,
        user_input: str,
        model_id: str,
        output_shape: dict[str, Any] | None = None,
    ) -> str: ...

    def is_configured(self, model_id: str) -> bool: ...
