"""
Question Generation Pipeline
generation/

Steps:
1. Topic Histogram   — count historical questions per topic for the selection
2. Topic Allocator   — split the requested total across topics by weight
3. Prompt Builder    — topic notes + PYQ sample + already-generated sample + type rules
4. Question Generator — one LLM call per question, JSON extracted from the reply
5. Pipeline          — sequential run with per-question failure isolation and progress
"""
