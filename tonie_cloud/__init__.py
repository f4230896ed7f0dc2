"""Tonie cloud client: manage the chapters of Creative Tonie figurines.

WHY: Creative Tonies are filled through the Tonies cloud, which only offers
a web UI and a REST API. This package wraps the API so audio can be
uploaded, listed and removed from scripts and the command line.

HOW: Three layers: api (session, models, HTTP client), core (chapter
maintenance, prompts, URL-to-chapter flow) and adapters (external media
tools). The CLI wires them together.

RULES:
- All HTTP goes through tonie_cloud.api.client.TonieClient
- Interactive input only through a PromptProvider
- External processes only through tonie_cloud.adapters
"""

__version__ = "0.1.0"
