"""Built-in CLI sub-commands for beecli.

* :mod:`~beecli.commands.auth` -- ``login``, ``logout``, ``status`` and
  ``me``, registered directly on the root app.
* :mod:`~beecli.commands.config` -- view and modify global settings.
"""
