# blueprint_coach/llm/types.py
"""Request and response types for the LLM relay."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from blueprint_coach.config.schema import GenerationSettings


class GenerationConfig(BaseModel):
    """Sampling parameters forwarded to the model."""

    model_config = ConfigDict(extra="ignore")

    temperature: float = 0.7
    max_output_tokens: int = 500
    top_p: float = 0.95
    top_k: int = 40

    @classmethod
    def from_settings(cls, settings: GenerationSettings) -> "GenerationConfig":
        return cls(**settings.model_dump())

    def to_wire(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "maxOutputTokens": self.max_output_tokens,
            "topP": self.top_p,
            "topK": self.top_k,
        }


class HistoryTurn(BaseModel):
    """One prior turn. Assistant turns use the relay's "model" role."""

    role: Literal["user", "model"]
    text: str

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [{"text": self.text}]}


class CompletionRequest(BaseModel):
    """A single completion request to the relay."""

    model_config = ConfigDict(extra="ignore")

    prompt: str
    history: list[HistoryTurn] = Field(default_factory=list)
    system_prompt: str = ""
    model: str | None = None
    generation_config: GenerationConfig | None = None

    def to_payload(self) -> dict[str, Any]:
        """
        Serialize to the relay's JSON body.

        The system prompt is sent both as its own field and as the opening
        user turn followed by a short model acknowledgement, which is how
        the relay seeds conversations for models without a system role.
        """
        history: list[dict[str, Any]] = []
        if self.system_prompt:
            history.append(HistoryTurn(role="user", text=self.system_prompt).to_wire())
            history.append(
                HistoryTurn(
                    role="model",
                    text="Understood. I will coach the educator one step at a time.",
                ).to_wire()
            )
        history.extend(turn.to_wire() for turn in self.history)

        payload: dict[str, Any] = {
            "prompt": self.prompt,
            "history": history,
        }
        if self.system_prompt:
            payload["systemPrompt"] = self.system_prompt
        if self.model:
            payload["model"] = self.model
        if self.generation_config is not None:
            payload["generationConfig"] = self.generation_config.to_wire()
        return payload


class CompletionResponse(BaseModel):
    """Relay result: text on success, error and status on failure."""

    text: str | None = None
    error: str | None = None
    status: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)

    @classmethod
    def from_wire(cls, data: Any, status: int | None = None) -> "CompletionResponse":
        """
        Parse a relay body.

        Accepts {"text": ...}, {"response": ...}, or a raw Gemini body with
        candidates[0].content.parts[0].text.
        """
        if not isinstance(data, dict):
            return cls(error="Relay returned a non-object body", status=status)
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            return cls(error=message or "Unknown relay error", status=status)
        for key in ("text", "response", "chatResponse"):
            if isinstance(data.get(key), str):
                return cls(text=data[key], status=status)
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return cls(error="Relay response has no text", status=status)
        return cls(text=text, status=status)
