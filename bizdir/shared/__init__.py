"""
Shared utilities package.

Cross-cutting concerns used by both the Core Domain and the adapters:
- Configuration management
- Structured logging
- Distributed tracing
- Resilience patterns (Circuit Breaker, retries)
- Dependency Injection wiring
"""
