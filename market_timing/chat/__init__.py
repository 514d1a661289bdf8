"""
Chat assistant over the current market context.

Modules
-------
gemini_client : GeminiChatClient — Generative Language API (Gemini) wrapper.
"""
