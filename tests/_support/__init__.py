"""
Test support utilities for fontspine tests.

- ``fake_tools``: ``FakeToolRunner``, an instrumented toolchain simulator
- ``project``: builders for throwaway project trees (config, sources, recipes)
"""
