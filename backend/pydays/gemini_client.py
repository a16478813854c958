from __future__ import annotations
import json
import httpx
from typing import Any, Dict, List, Optional
from .settings import settings


def _to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
	"""Convert a JSON Schema subset into Gemini's responseSchema dialect.

	Gemini expects upper-case type names and rejects keywords such as
	``additionalProperties`` or ``title``; everything else is passed through recursively.
	"""
	converted: Dict[str, Any] = {}
	for key, value in schema.items():
		if key in ("additionalProperties", "title"):
			continue
		if key == "type" and isinstance(value, str):
			converted[key] = value.upper()
		elif key == "type" and isinstance(value, list):
			# ["string", "null"] becomes a nullable STRING
			non_null = [t for t in value if t != "null"]
			converted[key] = non_null[0].upper() if non_null else "STRING"
			if "null" in value:
				converted["nullable"] = True
		elif key == "properties" and isinstance(value, dict):
			converted[key] = {name: _to_gemini_schema(sub) for name, sub in value.items()}
		elif key == "items" and isinstance(value, dict):
			converted[key] = _to_gemini_schema(value)
		else:
			converted[key] = value
	return converted


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		if self.provider == "vertex":
			region = settings.vertex_region
			project = settings.vertex_project or "placeholder-project"
			# Vertex AI Generative REST endpoint (API key via header)
			self.base_url = base_url or (
				f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			# Google AI Studio (Generative Language API)
			self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		timeout = timeout if timeout is not None else settings.gemini_timeout_seconds
		self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
		self._fallback_client: Optional[httpx.AsyncClient] = None
		self._fallback_enabled = bool(settings.openrouter_api_key)
		self._openrouter_api_key = settings.openrouter_api_key
		self._openrouter_model = settings.openrouter_model
		self._openrouter_base_url = settings.openrouter_base_url
		self._openrouter_headers = {
			"Authorization": f"Bearer {self._openrouter_api_key}" if self._openrouter_api_key else "",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		if self._fallback_enabled:
			self._fallback_client = httpx.AsyncClient(timeout=timeout, transport=transport)

	async def generate(
		self,
		prompt: str,
		*,
		system: Optional[str] = None,
		response_schema: Optional[Dict[str, Any]] = None,
	) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system:
			payload["systemInstruction"] = {"parts": [{"text": system}]}
		if response_schema is not None:
			payload["generationConfig"] = {
				"responseMimeType": "application/json",
				"responseSchema": _to_gemini_schema(response_schema),
			}
		return await self._post_payload(
			payload,
			fallback_messages=self._fallback_messages(prompt, system),
			response_schema=response_schema,
		)

	async def generate_json(
		self,
		prompt: str,
		schema: Dict[str, Any],
		*,
		system: Optional[str] = None,
		schema_name: str = "result",
	) -> Any:
		"""Generate a response constrained by ``schema`` and decode it.

		Raises ``ValueError`` when the model output is not valid JSON.
		"""
		schema = {**schema, "title": schema.get("title", schema_name)}
		text = await self.generate(prompt, system=system, response_schema=schema)
		try:
			return json.loads(text)
		except json.JSONDecodeError as err:
			raise ValueError(f"Model returned non-JSON content: {text[:200]!r}") from err

	@staticmethod
	def _fallback_messages(prompt: str, system: Optional[str]) -> List[Dict[str, str]]:
		messages: List[Dict[str, str]] = []
		if system:
			messages.append({"role": "system", "content": system})
		messages.append({"role": "user", "content": prompt})
		return messages

	async def _post_payload(
		self,
		payload: Dict[str, Any],
		*,
		fallback_messages: List[Dict[str, str]],
		response_schema: Optional[Dict[str, Any]] = None,
	) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		last_error: Optional[Exception] = None
		try:
			r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			last_error = http_err
		except httpx.RequestError as net_err:
			last_error = net_err
		if last_error is None:
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				last_error = RuntimeError(f"Unexpected Gemini response: {r.text}")
		if not self._fallback_enabled:
			raise last_error or RuntimeError("Gemini call failed and no fallback configured")
		return await self._fallback_generate(fallback_messages, last_error, response_schema)

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback_client is not None:
			await self._fallback_client.aclose()

	async def _fallback_generate(
		self,
		messages: List[Dict[str, str]],
		primary_error: Optional[Exception],
		response_schema: Optional[Dict[str, Any]] = None,
	) -> str:
		if not self._fallback_client or not self._openrouter_api_key:
			raise primary_error or RuntimeError("Fallback requested but OpenRouter is not configured")
		headers = {k: v for k, v in self._openrouter_headers.items() if v}
		payload: Dict[str, Any] = {
			"model": self._openrouter_model,
			"messages": messages,
		}
		if response_schema is not None:
			payload["response_format"] = {
				"type": "json_schema",
				"json_schema": {
					"name": response_schema.get("title", "result"),
					"strict": True,
					"schema": {k: v for k, v in response_schema.items() if k != "title"},
				},
			}
		try:
			r = await self._fallback_client.post(
				self._openrouter_base_url,
				headers=headers,
				json=payload,
			)
			r.raise_for_status()
			data = r.json()
			return data["choices"][0]["message"]["content"]
		except Exception as fallback_err:
			if primary_error is not None:
				raise RuntimeError(
					f"Gemini primary call failed ({primary_error}); fallback via OpenRouter also failed"
				) from fallback_err
			raise fallback_err
