"""
Read-side presentation: dashboard view assembly, text formatting, chat context.

Modules
-------
markets      : global index changes, composite ranking, score distribution.
dashboard    : DashboardView + build_dashboard().
formatters   : plain-text report for the CLI.
chat_context : indicator summary handed to the chat assistant.
"""
