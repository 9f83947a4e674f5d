"""Chat assistant backed by the OpenAI chat completions API."""
