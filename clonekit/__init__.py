"""
Module dependencies:
    basetypes.py:
        imports array, collections, datetime, decimal, enum, fractions, functools, inspect, re, types, weakref
    reflection.py:
        depends on basetypes
        requires pydantic
    objects.py:
        depends on basetypes, reflection
        imports array, collections, itertools, logging, re
        requires pydantic
    functions.py:
        depends on basetypes, reflection
        imports functools, json, logging

Requirements:
    pydantic
"""
from clonekit.basetypes import *
from clonekit.reflection import *
from clonekit.objects import *
from clonekit.functions import *
