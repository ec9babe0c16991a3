# -*- coding: utf-8 -*-
"""
PiCar — picar_base/utils/__init__.py
------------------------------------
Shared helpers: `logging`, `clamp`, `timing`.

Import the submodules directly (`from picar_base.utils.timing import ...`);
nothing is re-exported here because `timing` and `clamp` depend on the
driver exception hierarchy.
"""
