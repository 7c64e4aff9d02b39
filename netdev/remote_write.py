"""Client for sending Prometheus metrics via remote write."""

import sys
from datetime import datetime
from typing import Any, Dict, Optional

import requests
import snappy
from google.protobuf.json_format import MessageToJson
from prometheus_client import CollectorRegistry

from prometheus_remote_writer.proto import remote_pb2 as prompb_pb2
from prometheus_remote_writer.proto import types_pb2


class RemoteWriteClient:
    """Client for sending Prometheus metrics via remote write."""

    def __init__(self, remote_write_url: str, headers: Optional[Dict[str, str]] = None, instance_label: str = 'netdev', verbose: bool = False):
        self.remote_write_url = remote_write_url
        self.headers = dict(headers or {})
        self.headers.setdefault('Content-Type', 'application/x-protobuf')
        self.headers.setdefault('Content-Encoding', 'snappy')
        self.headers.setdefault('X-Prometheus-Remote-Write-Version', '0.1.0')
        self.instance_label = instance_label  # Value for the instance label
        self.verbose = verbose

    def send_registry(self, registry: CollectorRegistry, timestamp: Optional[datetime] = None,
                      dry_run: bool = False, debug_file: Optional[str] = None) -> bool:
        """Collect the registry once and send every sample to the remote write endpoint.

        Args:
            registry: Registry to collect; collection errors propagate to the caller
            timestamp: Timestamp for all samples (default: now)
            dry_run: If True, process metrics but skip sending to endpoint
            debug_file: Optional path to save uncompressed payload data before compression

        Returns:
            True if successful, False otherwise
        """
        write_request = self.convert_registry(registry, timestamp)

        num_timeseries = len(write_request.timeseries)
        total_samples = sum(len(ts.samples) for ts in write_request.timeseries)
        print(f"Prepared {num_timeseries} time series with {total_samples} total samples", file=sys.stderr)

        data = write_request.SerializeToString()

        if debug_file:
            self._write_debug_file(write_request, debug_file)

        if dry_run:
            print("Dry-run mode: Skipping actual send to endpoint", file=sys.stderr)
            return True

        try:
            compressed_data = snappy.compress(data)
            print(f"Sending {len(compressed_data)} bytes (uncompressed: {len(data)} bytes)", file=sys.stderr)

            response = requests.post(
                self.remote_write_url,
                data=compressed_data,
                headers=self.headers,
                timeout=30
            )

            if response.status_code == 200 or response.status_code == 204:
                print(f"Successfully sent metrics (status {response.status_code})", file=sys.stderr)
                return True
            else:
                print(f"Error sending metrics: {response.status_code} - {response.text}", file=sys.stderr)
                print(f"Response headers: {dict(response.headers)}", file=sys.stderr)
                return False
        except requests.exceptions.ConnectionError:
            print(f"Connection error: Could not connect to {self.remote_write_url}", file=sys.stderr)
            print("  Make sure Prometheus is running and the remote write receiver is enabled", file=sys.stderr)
            print("  Start Prometheus with: --web.enable-remote-write-receiver", file=sys.stderr)
            return False
        except requests.exceptions.RequestException as e:
            print(f"Error in remote write: {e}", file=sys.stderr)
            return False

    def convert_registry(self, registry: CollectorRegistry, timestamp: Optional[datetime] = None):
        """Convert one collection of the registry to a remote write request."""
        if timestamp is None:
            timestamp = datetime.now()
        timestamp_ms = int(timestamp.timestamp() * 1000)

        write_request = prompb_pb2.WriteRequest()  # type: ignore
        time_series_map: Dict[tuple, Any] = {}

        for metric in registry.collect():
            for sample in metric.samples:
                self._add_sample_to_map(time_series_map, sample.name, sample.labels, sample.value, timestamp_ms)

        self._finalize_time_series(time_series_map, write_request)
        return write_request

    def _finalize_time_series(self, time_series_map: Dict[tuple, Any], write_request) -> None:
        """Add all time series to the write request."""
        for time_series in time_series_map.values():
            # Only add TimeSeries that have at least one sample
            if len(time_series.samples) > 0:
                new_ts = write_request.timeseries.add()
                new_ts.CopyFrom(time_series)

    def _write_debug_file(self, write_request, debug_file: str) -> None:
        """Save the uncompressed request as JSON."""
        try:
            try:
                # protobuf 26.x+
                json_data = MessageToJson(write_request, always_print_fields_with_no_presence=True)  # type: ignore[call-arg]
            except TypeError:
                json_data = MessageToJson(write_request, including_default_value_fields=True)  # type: ignore[call-arg]
            with open(debug_file, 'w', encoding='utf-8') as f:
                f.write(json_data)
            print(f"Saved uncompressed payload as JSON ({len(json_data)} bytes) to {debug_file}", file=sys.stderr)
        except OSError as e:
            print(f"Warning: Failed to write debug file {debug_file}: {e}", file=sys.stderr)

    def _print_metric_sample(self, time_series, timestamp_ms: int, value: float) -> None:
        """Print a single metric sample in verbose mode."""
        metric_name = None
        labels = {}
        for label in time_series.labels:
            if label.name == '__name__':
                metric_name = label.value
            else:
                labels[label.name] = label.value

        if labels:
            label_str = ','.join(f'{k}="{v}"' for k, v in sorted(labels.items()))
            metric_str = f'{metric_name}{{{label_str}}}'
        else:
            metric_str = metric_name

        timestamp_dt = datetime.fromtimestamp(timestamp_ms / 1000.0)
        print(f"{timestamp_dt.isoformat()} {metric_str} {value}")

    def _add_sample_to_map(self, time_series_map: Dict[tuple, Any], metric_name: str, labels: Dict[str, str], value: float, timestamp_ms: int):
        """Add a sample to the time series map, grouping by metric name and labels."""
        # Add instance label to all metrics
        labels_with_instance = dict(labels)
        labels_with_instance['instance'] = self.instance_label

        sorted_labels = tuple(sorted(labels_with_instance.items()))
        key = (metric_name, sorted_labels)

        if key not in time_series_map:
            time_series = types_pb2.TimeSeries()  # type: ignore

            label = time_series.labels.add()
            label.name = '__name__'
            label.value = metric_name

            # Remote write expects labels sorted by name
            for key_name, val in sorted_labels:
                label = time_series.labels.add()
                label.name = key_name
                label.value = str(val)

            time_series_map[key] = time_series

        sample = time_series_map[key].samples.add()
        sample.value = value
        sample.timestamp = timestamp_ms

        if self.verbose:
            self._print_metric_sample(time_series_map[key], timestamp_ms, value)
