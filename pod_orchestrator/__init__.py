"""Pod orchestrator package.

Launches and terminates RunPod pods through the GraphQL API, fanning the
per-pod mutations out through a bounded-concurrency batch runner that
attempts every operation before reporting failures.
"""
