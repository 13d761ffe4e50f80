"""Built-in CLI sub-commands for ssoflow.

* :mod:`~ssoflow.commands.credentials` -- ``login``, ``credential-process``
  and ``env``; each runs the SSO flow and renders the credentials.

Each module exports plain callback functions registered on the root app in
:mod:`ssoflow.app`.
"""
