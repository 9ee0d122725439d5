"""
LLM provider layer

- Provider profiles (closed enum of supported providers)
- Per-provider request adapters and response parsing
- Post-build request adjustments
- Upstream error classification and result extraction
"""
