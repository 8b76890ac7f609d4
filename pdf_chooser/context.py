"""Host integration seam: the editor field the picker reads and writes."""

from dataclasses import dataclass, field
from typing import Any, Protocol

TOKEN_PARAMETER = "hubspotAccessToken"


class FieldContext(Protocol):
    @property
    def plugin_parameters(self) -> dict[str, Any]: ...

    def get_field_value(self) -> str | None: ...

    def set_field_value(self, value: str) -> None: ...

    def notice(self, message: str) -> None: ...

    def alert(self, message: str) -> None: ...


@dataclass
class DictFieldContext:
    """In-process FieldContext holding form values in a plain dict."""

    field_path: str
    form_values: dict[str, Any] = field(default_factory=dict)
    plugin_parameters: dict[str, Any] = field(default_factory=dict)
    notices: list[str] = field(default_factory=list)
    alerts: list[str] = field(default_factory=list)

    def get_field_value(self) -> str | None:
        return self.form_values.get(self.field_path)

    def set_field_value(self, value: str) -> None:
        self.form_values[self.field_path] = value

    def notice(self, message: str) -> None:
        self.notices.append(message)

    def alert(self, message: str) -> None:
        self.alerts.append(message)
