# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab


import os
from abc import ABCMeta

from hpcjm_lib.core.common import equals_normalized
from hpcjm_lib.core.config import CFG
from hpcjm_lib.core.error import JMDetectionError, JMError
from hpcjm_lib.core.logger import get_logger

from .interface import JobManagerInterface

logger = get_logger(__name__)


class JobManagerMeta(ABCMeta):
    """
    Metaclass for job manager classes.
    """

    # registry of supported job managers; non-default job managers are
    # detected in the order of their registration
    _registry: dict[str, type[JobManagerInterface]] = {}

    # job manager used when no other job manager is available
    _default: type[JobManagerInterface] | None = None

    def __str__(cls: type[JobManagerInterface]):
        """
        Get the string representation of the job manager class.
        """
        return cls.envName()

    @classmethod
    def register(mcs, jm_cls: type[JobManagerInterface], default: bool = False):
        """
        Register a job manager class in the metaclass registry.

        Args:
            jm_cls: Subclass of JobManagerInterface to register.
            default: Use the job manager when no other job manager is available.
        """
        mcs._registry[jm_cls.envName()] = jm_cls
        if default:
            JobManagerMeta._default = jm_cls

    @classmethod
    def clear(mcs):
        """
        Remove all registered job managers, including the default one.
        """
        mcs._registry.clear()
        JobManagerMeta._default = None

    @classmethod
    def fromStr(mcs, name: str) -> type[JobManagerInterface]:
        """
        Return the job manager class registered with the given name.

        The name is compared ignoring case, hyphens, and underscores.

        Raises:
            JMError: If no class is registered for the given name.
        """
        for registered, jm_cls in mcs._registry.items():
            if equals_normalized(registered, name):
                return jm_cls

        raise JMError(f"No job manager registered as '{name}'.")

    @classmethod
    def detect(mcs) -> type[JobManagerInterface]:
        """
        Select the job manager to use on the current host.

        The registered non-default job managers are checked in the order of
        their registration and the first available one is returned. If none
        of them is available, the default job manager is returned.

        Raises:
            JMDetectionError: If no default job manager is registered.

        Returns:
            type[JobManagerInterface]: The selected job manager class.
        """
        if not (default := JobManagerMeta._default):
            raise JMDetectionError("Unable to find a default job manager.")

        for Backend in mcs._registry.values():
            if Backend is default:
                continue

            if Backend.isAvailable():
                logger.debug(f"Detected job manager: {str(Backend)}.")
                return Backend

            logger.debug(f"Job manager {str(Backend)} not detected.")

        logger.debug(f"Using the default job manager: {str(default)}.")
        return default

    @classmethod
    def fromEnvVarOrDetect(mcs) -> type[JobManagerInterface]:
        """
        Select a job manager based on the environment variable or by detection.

        Returns:
            type[JobManagerInterface]: The selected job manager class.

        Raises:
            JMError: If the environment variable names an unknown job manager.
            JMDetectionError: If no default job manager is registered.
        """
        name = os.environ.get(CFG.env_vars.job_manager)
        if name:
            logger.debug(f"Using job manager name from an environment variable: {name}.")
            return mcs.fromStr(name)

        return mcs.detect()

    @classmethod
    def obtain(mcs, name: str | None) -> type[JobManagerInterface]:
        """
        Obtain a job manager class by name, environment variable, or detection.

        Args:
            name (str | None): Optional name of the job manager to obtain.
                If `None`, falls back to `fromEnvVarOrDetect`.

        Returns:
            type[JobManagerInterface]: The selected job manager class.

        Raises:
            JMError: If `name` is provided but no job manager with that name is registered.
        """
        if name:
            return mcs.fromStr(name)

        return mcs.fromEnvVarOrDetect()


def job_manager(cls=None, *, default: bool = False):
    """
    Class decorator to register a job manager with the JobManagerMeta registry.

    Use `@job_manager(default=True)` to register the job manager used when
    no other job manager is available.
    """

    def wrap(jm_cls):
        JobManagerMeta.register(jm_cls, default=default)
        return jm_cls

    if cls is None:
        return wrap

    return wrap(cls)
