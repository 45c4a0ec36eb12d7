"""
Execution trace recording for the CHIP-8 virtual machine.

A trace is a bounded history of per-instruction snapshots (cycle, address,
opcode, disassembly, registers). It can be exported to JSON or CSV and read
back for inspection; it is not a save-state and cannot be restored into a
running machine.
"""

import numpy as np
import logging
import json
import csv
import os
import time
from typing import Dict, List, Optional, Any
from collections import deque, Counter

from ..constants import MAX_HISTORY_SIZE

logger = logging.getLogger("Chip8Emulator.StateRecorder")

class StateRecorder:
    """
    Records and queries per-step machine snapshots.
    """

    def __init__(self, max_history: int = MAX_HISTORY_SIZE,
                record_filter: Optional[List[str]] = None):
        """
        Initialize the state recorder.

        Args:
            max_history: Maximum number of states to keep in memory
            record_filter: List of register names to include (None for all)
        """
        self.max_history = max_history
        self.record_filter = record_filter

        # Oldest snapshots fall off the front
        self.state_history = deque(maxlen=max_history)

        self.stats = {
            "total_records": 0,
            "start_time": time.time(),
            "start_cycle": None,
            "current_cycle": None,
            "unique_registers": set()
        }

        logger.info(f"Initialized state recorder with max history {max_history}")

    def record_state(self, state: Dict[str, Any]) -> None:
        """
        Record a machine state snapshot.

        Args:
            state: Snapshot dictionary with "cycle", "pc", "opcode",
                "mnemonic" and "registers" keys
        """
        if self.record_filter is not None and "registers" in state:
            state = dict(state)
            state["registers"] = {
                name: value for name, value in state["registers"].items()
                if name in self.record_filter
            }

        self.stats["total_records"] += 1

        if "cycle" in state:
            if self.stats["start_cycle"] is None:
                self.stats["start_cycle"] = state["cycle"]
            self.stats["current_cycle"] = state["cycle"]

        if "registers" in state:
            self.stats["unique_registers"].update(state["registers"].keys())

        self.state_history.append(state)

    def get_state_history(self, start_idx: Optional[int] = None,
                       end_idx: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get a slice of the state history.

        Args:
            start_idx: Starting index (None for beginning)
            end_idx: Ending index (None for end)

        Returns:
            List of state snapshots
        """
        return list(self.state_history)[start_idx:end_idx]

    def get_state_by_cycle(self, cycle: int) -> Optional[Dict[str, Any]]:
        """
        Get the snapshot for a cycle, or the nearest recorded one.

        Args:
            cycle: Cycle number to retrieve

        Returns:
            State snapshot if any are recorded, None otherwise
        """
        best = None
        for state in self.state_history:
            if "cycle" not in state:
                continue
            if state["cycle"] == cycle:
                return state
            if best is None or abs(state["cycle"] - cycle) < abs(best["cycle"] - cycle):
                best = state

        if best is not None:
            logger.info(f"Exact cycle {cycle} not found, returning nearest cycle {best['cycle']}")
        return best

    def get_register_history(self, register_name: str) -> Dict[str, List[Any]]:
        """
        Get history for a specific register.

        Args:
            register_name: Name of register to retrieve (e.g. "V3", "PC")

        Returns:
            Dictionary with cycle numbers and register values
        """
        cycles = []
        values = []

        for state in self.state_history:
            registers = state.get("registers", {})
            if register_name in registers:
                cycles.append(state.get("cycle", len(cycles)))
                values.append(registers[register_name])

        return {
            "cycles": cycles,
            "values": values
        }

    def get_register_array(self, register_name: str) -> np.ndarray:
        """
        Register history as a (2, N) array of cycles and values.
        """
        history = self.get_register_history(register_name)
        return np.array([history["cycles"], history["values"]], dtype=np.int64)

    def get_opcode_histogram(self) -> Dict[str, int]:
        """
        Count executed instructions by mnemonic.

        Returns:
            Mapping of mnemonic to execution count, most frequent first
        """
        counts = Counter(
            state["mnemonic"].split(" ", 1)[0]
            for state in self.state_history if "mnemonic" in state
        )
        return dict(counts.most_common())

    def get_hot_addresses(self, limit: int = 10) -> List[Dict[str, int]]:
        """
        Most frequently executed instruction addresses.

        Args:
            limit: Number of addresses to return
        """
        counts = Counter(state["pc"] for state in self.state_history if "pc" in state)
        return [{"pc": pc, "count": count} for pc, count in counts.most_common(limit)]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get recorder statistics.

        Returns:
            Dictionary with statistics
        """
        elapsed_time = time.time() - self.stats["start_time"]

        if self.stats["start_cycle"] is not None and self.stats["current_cycle"] is not None:
            total_cycles = self.stats["current_cycle"] - self.stats["start_cycle"]
        else:
            total_cycles = 0

        return {
            "total_records": self.stats["total_records"],
            "elapsed_time": elapsed_time,
            "total_cycles": total_cycles,
            "cycles_per_second": total_cycles / elapsed_time if elapsed_time > 0 else 0,
            "current_history_size": len(self.state_history),
            "max_history_size": self.max_history,
            "unique_registers": sorted(self.stats["unique_registers"])
        }

    def clear(self) -> None:
        self.state_history.clear()
        self.stats["total_records"] = 0
        self.stats["start_cycle"] = None
        self.stats["current_cycle"] = None
        self.stats["unique_registers"] = set()

    def save_history(self, filename: str, format: str = 'json') -> bool:
        """
        Export the trace to a file.

        Args:
            filename: Output filename
            format: File format ('json' or 'csv')

        Returns:
            True if successful, False otherwise
        """
        if format not in ('json', 'csv'):
            logger.error(f"Unsupported format: {format}")
            return False

        try:
            output_dir = os.path.dirname(filename)
            if output_dir and not os.path.exists(output_dir):
                os.makedirs(output_dir)

            if format == 'json':
                data = {
                    "history": list(self.state_history),
                    "statistics": self.get_statistics()
                }
                with open(filename, 'w') as f:
                    json.dump(data, f, indent=2)
            else:
                register_names = sorted(self.stats["unique_registers"])
                with open(filename, 'w', newline='') as f:
                    writer = csv.writer(f)
                    writer.writerow(["record_idx", "cycle", "pc", "opcode", "mnemonic"] +
                                    [f"reg_{name}" for name in register_names])
                    for i, state in enumerate(self.state_history):
                        registers = state.get("registers", {})
                        writer.writerow(
                            [i, state.get("cycle", ""), state.get("pc", ""),
                             f"{state['opcode']:04X}" if "opcode" in state else "",
                             state.get("mnemonic", "")] +
                            [registers.get(name, "") for name in register_names]
                        )

            logger.info(f"Saved state history to {filename} in {format} format")
            return True

        except OSError as e:
            logger.error(f"Error saving history: {e}")
            return False

    def load_history(self, filename: str) -> bool:
        """
        Load a JSON trace exported by save_history for inspection.

        Args:
            filename: Input filename

        Returns:
            True if successful, False otherwise
        """
        _, ext = os.path.splitext(filename)
        if ext.lower() != '.json':
            logger.error(f"Unsupported file format: {ext}")
            return False

        try:
            with open(filename, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading history: {e}")
            return False

        self.clear()
        for state in data.get("history", []):
            self.record_state(state)

        logger.info(f"Loaded state history from {filename}")
        return True

    def find_register_value_changes(self, register_name: str,
                                 start_cycle: Optional[int] = None,
                                 end_cycle: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Find all instances where a register changes value.

        Args:
            register_name: Register name to track
            start_cycle: Starting cycle (None for beginning)
            end_cycle: Ending cycle (None for end)

        Returns:
            List of change events with cycle, address and value information
        """
        changes = []
        last_value = None

        for state in self.state_history:
            registers = state.get("registers", {})
            if register_name not in registers:
                continue

            current_value = registers[register_name]
            current_cycle = state.get("cycle")

            if start_cycle is not None and current_cycle is not None and current_cycle < start_cycle:
                last_value = current_value
                continue

            if end_cycle is not None and current_cycle is not None and current_cycle > end_cycle:
                break

            if last_value is not None and current_value != last_value:
                changes.append({
                    "cycle": current_cycle,
                    "pc": state.get("pc"),
                    "mnemonic": state.get("mnemonic"),
                    "old_value": last_value,
                    "new_value": current_value
                })

            last_value = current_value

        return changes
