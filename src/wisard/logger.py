"""
Logging utilities for WiSARD runs.

Logger is a callable, so it can be handed to any component that takes a
`logger: Callable[[str], None]` (WiSARD, bleach, ...). It writes through
the standard logging module to:
- a timestamped file under logs/YYYY/MM/DD/ (or an explicit log_dir)
- the console (optional)
"""

import os
import logging
from datetime import datetime
from typing import Optional


class Logger:
	"""
	Timestamped file + console logger.

	Usage:
		logger = Logger("iris")
		model = WiSARD.for_attributes(labels, scale, config, logger=logger)
		logger.header("Results")
		logger(f"accuracy = {acc:.3f}")

	Attributes:
		name: Logger name (used for the log filename)
		log_file: Path to the log file, None when file output is disabled
	"""

	def __init__(
		self,
		name: str = "wisard",
		log_dir: Optional[str] = None,
		project_root: Optional[str] = None,
		console: bool = True,
		to_file: bool = True,
		timestamp_format: str = '%H:%M:%S',
	):
		"""
		Args:
			name: Base name for the log file
			log_dir: Override log directory (default: project_root/logs/YYYY/MM/DD/)
			project_root: Project root directory (default: two levels above the package)
			console: Also log to the console
			to_file: Write a log file
			timestamp_format: strftime format for log timestamps
		"""
		self.name = name
		self.log_file: Optional[str] = None

		now = datetime.now()
		timestamp = now.strftime("%Y%m%d_%H%M%S")

		self._logger = logging.getLogger(f'wisard.{name}.{timestamp}')
		self._logger.setLevel(logging.INFO)
		self._logger.propagate = False
		# Same name within the same second: release the earlier instance's handlers
		self.close()

		formatter = logging.Formatter('%(asctime)s | %(message)s', datefmt=timestamp_format)

		if to_file:
			if log_dir is None:
				if project_root is None:
					# src/wisard/logger.py -> project root
					project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
				log_dir = os.path.join(
					project_root, "logs",
					now.strftime("%Y"), now.strftime("%m"), now.strftime("%d"),
				)
			os.makedirs(log_dir, exist_ok=True)
			self.log_file = os.path.join(log_dir, f"{name}_{timestamp}.log")

			file_handler = logging.FileHandler(self.log_file)
			file_handler.setFormatter(formatter)
			self._logger.addHandler(file_handler)

		if console:
			console_handler = logging.StreamHandler()
			console_handler.setFormatter(formatter)
			self._logger.addHandler(console_handler)

	def __call__(self, message: str = "", flush: bool = True) -> None:
		self.log(message, flush=flush)

	def log(self, message: str = "", flush: bool = True) -> None:
		self._logger.info(message)
		if flush:
			for handler in self._logger.handlers:
				handler.flush()

	def warning(self, message: str) -> None:
		self._logger.warning(message)

	def separator(self, char: str = "=", width: int = 70) -> None:
		self.log(char * width)

	def header(self, title: str, char: str = "=", width: int = 70) -> None:
		"""Blank line, then the title framed by separators."""
		self.log()
		self.separator(char, width)
		self.log(f"  {title}")
		self.separator(char, width)

	def section(self, title: str, char: str = "-", width: int = 50) -> None:
		self.header(title, char, width)

	def close(self) -> None:
		for handler in list(self._logger.handlers):
			handler.close()
			self._logger.removeHandler(handler)

	def __repr__(self) -> str:
		return f"Logger(name='{self.name}', log_file='{self.log_file}')"


def create_logger(
	name: str = "wisard",
	log_dir: Optional[str] = None,
	console: bool = True,
) -> Logger:
	"""Factory for a Logger writing to log_dir (or the dated default)."""
	return Logger(name=name, log_dir=log_dir, console=console)
