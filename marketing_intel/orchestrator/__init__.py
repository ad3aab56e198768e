"""Dependency-aware execution of analysis modules.

Architecture (bottom-up):
- schemas: Run configuration, scopes, staged plans, failure records
- planner: Groups requested modules into dependency-ordered stages
- engine: Runs stages sequentially, modules within a stage concurrently,
  and hands accepted outputs to the synthesizer
"""
