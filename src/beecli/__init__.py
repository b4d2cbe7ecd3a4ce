"""beecli -- command-line client for Bee, authenticated by device pairing.

The CLI obtains a long-lived API credential without a password: it sends a
fresh public key to the pairing service, the user approves the request on a
device that is already signed in, and the credential comes back sealed to
that key. Pairing state survives restarts, so an interrupted login resumes
where it left off.

Typical workflow::

    bee login          # pair this machine with your Bee account
    bee status         # show the environment and the masked credential
    bee me             # print the verified profile as JSON

Modules:
    app: Typer application and CLI entry point.
    auth: Pairing protocol, credential storage, and verification.
    client: Retrying HTTP client shared by the pairing and identity calls.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and the environment map.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
