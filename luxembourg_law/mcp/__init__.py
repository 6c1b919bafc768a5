"""MCP server package for the Luxembourg Law Service.

The MCP server lets LLM agents call the legislation tools:
- search_legislation / get_provision
- validate_citation / format_citation / check_currency
- get_eu_basis / get_luxembourg_implementations / get_provision_eu_basis
- list_sources / about

Transport:
- stdio
"""
