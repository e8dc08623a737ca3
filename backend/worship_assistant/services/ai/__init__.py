"""
Chat orchestration services package.

- dispatcher / orchestration: route classified queries to responders
- theology / batching / llm_client: inference-backed theological analysis
  with chunking, timeout degradation and a local fallback
- agents: deterministic responders (music, history, general)

Classification itself lives in worship_assistant.services.classification and
never calls the inference service.
"""
