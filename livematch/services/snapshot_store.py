"""
Local snapshot store for the live match officiating desk.

This module saves and loads LiveMatch snapshots as JSON files so a session
that could not sync with the backend survives a restart of the desk.
"""
import datetime
import json
import logging
import os
from typing import List, Optional, Tuple

from ..models import LiveMatch

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Store for LiveMatch snapshots in a directory of JSON files.

    One file per match holds the latest snapshot; :meth:`auto_save` also
    keeps timestamped copies.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def path_for(self, match_id: str) -> str:
        return os.path.join(self.directory, f"match_{match_id}.json")

    @staticmethod
    def save_match_to_file(match: LiveMatch, file_path: str) -> None:
        """
        Save a match snapshot to a JSON file.

        Args:
            match: The match snapshot to save
            file_path: Path where to save the file

        Raises:
            OSError: If the file cannot be written
        """
        directory = os.path.dirname(file_path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        tmp_path = f"{file_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(match.to_json(), f, indent=2)
        os.replace(tmp_path, file_path)

    @staticmethod
    def load_match_from_file(file_path: str) -> LiveMatch:
        """
        Load a match snapshot from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file contains invalid JSON
            KeyError: If the snapshot has no match id
        """
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"Snapshot file not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return LiveMatch.from_json(data)

    def save(self, match: LiveMatch) -> str:
        path = self.path_for(match.id)
        self.save_match_to_file(match, path)
        return path

    def load(self, match_id: str) -> Optional[LiveMatch]:
        """Load the latest snapshot for a match, or None if there is none."""
        path = self.path_for(match_id)
        if not os.path.exists(path):
            return None
        try:
            return self.load_match_from_file(path)
        except (OSError, ValueError, KeyError) as e:
            logger.warning("Ignoring unreadable snapshot %s: %s", path, e)
            return None

    def auto_save(self, match: LiveMatch) -> Optional[str]:
        """
        Save a timestamped copy of a match snapshot.

        Returns:
            Path to saved file, or None if save failed
        """
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        file_path = os.path.join(self.directory, f"match_{match.id}_autosave_{timestamp}.json")
        try:
            self.save_match_to_file(match, file_path)
        except OSError as e:
            logger.warning("Auto-save of match %s failed: %s", match.id, e)
            return None
        return file_path

    def get_recent_saves(self, limit: int = 10) -> List[Tuple[str, float]]:
        """
        Get list of recent snapshot files.

        Returns:
            List of tuples (filename, modification_time) sorted by newest first
        """
        if not os.path.exists(self.directory):
            return []

        try:
            json_files = []
            for filename in os.listdir(self.directory):
                if filename.endswith(".json"):
                    file_path = os.path.join(self.directory, filename)
                    if os.path.isfile(file_path):
                        json_files.append((filename, os.path.getmtime(file_path)))

            json_files.sort(key=lambda x: x[1], reverse=True)
            return json_files[:limit]
        except OSError:
            return []
