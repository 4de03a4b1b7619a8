"""
vibemate - Routing rule configuration for an API dispatcher

Keeps the rule set that decides which provider serves OpenAI, Anthropic and
generic API traffic well-formed: unique ordering, protected default rules,
non-overlapping namespaces and safe reordering.

Example usage:
    # Start the admin server
    $ vibemate serve

    # Show configured rules
    $ vibemate rules

    # Preview where a request would go
    $ vibemate route /api/openai/v1/chat/completions --model gpt-4o
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
