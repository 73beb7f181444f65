"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/ai/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Package for AI-related components: providers, model routing,
                prompts, the two-stage classifier and the link filter.
------------------------------------------------------------------------------
"""

from .service import AIService, ModelRoute
