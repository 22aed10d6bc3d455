"""Tool providers. Each subpackage exposes register_tools(registry) in its tools module."""
