"""
Johnson - Contract Tree Engine

A deterministic, rules-driven engine for the contract-tree puzzle game.
Players pick nodes of a directed contract graph to build up five pools
(Damage, Risk, Money, Grit, Veil), then send a crew of runners in and
resolve the outcome. The engine provides:
- Contract data parsing and validation
- Node availability (graph reachability + gate conditions)
- Multi-pass pool calculation from declarative effect strings
- Table-driven damage resolution against a runner roster
"""

__version__ = "0.1.0"
