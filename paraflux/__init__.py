"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/__init__.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Core package for ParaFlux. Contains the inbox classification
                pipeline, the vault organizer and the semantic link graph.
------------------------------------------------------------------------------
"""

__version__ = "1.0.0"
