"""
Base class for all pipelines in the voice assistant.

This module defines the BasePipeline abstract base class that all specific
pipelines must implement. It enforces a common interface and provides shared
functionality for pipeline setup, metrics and request processing.
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, Optional
from monitoring.metrics import track_latency, track_errors, PIPELINE_PROCESSING_TIME
from config import CONFIG

logger = logging.getLogger(__name__)

class BasePipeline(ABC):
    """
    Abstract base class for all voice assistant pipelines.

    This class defines the interface that all pipelines must implement and provides shared
    functionality for pipeline setup, logging, configuration access, metrics instrumentation,
    and request processing. Concrete pipelines override `setup`, `get_pipeline_name`, and
    `_process_internal` to provide their behavior.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize common pipeline state and invoke pipeline-specific setup.

        The constructor configures a per-pipeline namespaced logger and keeps the global
        application configuration so subclasses can access settings without re-reading
        configuration files. It then calls `self.setup()` so the concrete pipeline can
        initialize its own resources (clients, tool executor, system prompt).

        Args:
            config (Dict[str, Any], optional): Configuration mapping. Defaults to CONFIG.
        """
        # Set up logger and config before calling setup
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.config = config if config is not None else CONFIG

        # Initialize pipeline-specific resources
        self.setup()

    @abstractmethod
    def setup(self) -> None:
        """
        Set up the pipeline with necessary resources.

        This method should be implemented by each pipeline to initialize
        any required resources (e.g., LLM client, tool executor).
        """
        pass

    @abstractmethod
    def get_pipeline_name(self) -> str:
        """
        Get the name of the pipeline.

        Returns:
            str: The pipeline's name for use in logging and metrics.
        """
        pass

    @track_latency(PIPELINE_PROCESSING_TIME, lambda self: {'pipeline_name': self.get_pipeline_name()})
    @track_errors('pipeline', lambda self: self.get_pipeline_name())
    def process(self, request: Any, interaction_id: str) -> Any:
        """
        Process one request through the pipeline.

        This is the main entry point. It wraps the pipeline-specific implementation with
        latency and error metrics and standardized start/end logging.

        Args:
            request (Any): The pipeline's request object
            interaction_id (str): Unique identifier for this interaction

        Returns:
            Any: The pipeline's result object
        """
        self._log_processing_start(interaction_id)

        try:
            result = self._process_internal(request, interaction_id)
            self._log_processing_end(interaction_id, success=True)
            return result
        except Exception:
            self._log_processing_end(interaction_id, success=False)
            raise

    @abstractmethod
    def _process_internal(self, request: Any, interaction_id: str) -> Any:
        """
        Internal processing implementation.

        Args:
            request (Any): The pipeline's request object
            interaction_id (str): Unique identifier for this interaction

        Returns:
            Any: The pipeline's result object
        """
        pass

    def _log_processing_start(self, interaction_id: str) -> None:
        pipeline_name = self.get_pipeline_name()
        self.logger.info(f"[{pipeline_name}] Starting processing for interaction {interaction_id}")

    def _log_processing_end(self, interaction_id: str, success: bool = True) -> None:
        """
        Log the end of processing indicating success or failure.

        Args:
            interaction_id (str): Unique identifier associated with the processed request.
            success (bool): True when processing completed normally; False when an exception occurred.
        """
        pipeline_name = self.get_pipeline_name()
        status = "completed successfully" if success else "failed"
        self.logger.info(f"[{pipeline_name}] Processing {status} for interaction {interaction_id}")
