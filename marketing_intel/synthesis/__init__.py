"""Cross-module synthesis of analysis outputs.

- schemas: StrategicSynthesis and its parts
- themes: Theme -> keyword table loaded from definitions/themes.yaml
- synthesizer: Insight merge, recommendation cross-reference, action plan,
  themes, metrics and executive summary
"""
