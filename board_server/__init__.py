"""
Board Server - collaborative board management (boards, lists, cards).

This package implements the core of a Trello-style board service:
- Schema compiler: declarative entity field maps -> query type definitions
- Schema assembler: one schema document per app, with change events
- Ordering engine: sparse fractional positions for lists and cards
- Move service: atomic read-neighbors-then-write over the board store

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌─────────────────┐
    │  Client     │────▶│  HTTP API   │────▶│  MoveService    │
    │  (drag/drop)│     │  (FastAPI)  │     │                 │
    └─────────────┘     └──────┬──────┘     └────────┬────────┘
                               │                     │
                               ▼                     ▼
                        ┌─────────────┐     ┌─────────────────┐
                        │  Schema     │     │  Ordering       │
                        │  Assembler  │     │  Engine (pure)  │
                        └──────┬──────┘     └────────┬────────┘
                               │                     │
                               ▼                     ▼
                        ┌─────────────┐     ┌─────────────────┐
                        │  Schema     │     │  BoardStore     │
                        │  sinks      │     │  (CAS writes)   │
                        └─────────────┘     └─────────────────┘

Invariants:
    - The compiler and the ordering engine are pure and hold no state
    - A move writes only the moved entity's position (plus a rare
      container renormalization)
    - Position reads and writes for one container happen as one atomic unit

How to change safely:
    - Keep compiler output byte-stable; downstream schema merging is textual
    - Keep the client and server position formulas identical
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
