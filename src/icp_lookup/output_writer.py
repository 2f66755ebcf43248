"""
Output Writer - renders lookup results as JSON or labeled text
"""

import sys
from typing import List, Optional, TextIO

from icp_lookup.models import Result

TEXT_LABELS = [
    ("input", "Input"),
    ("query_url", "Query URL"),
    ("license", "ICP备案/许可证号"),
    ("verify_time", "审核通过日期"),
    ("com_name", "主办单位名称"),
    ("typ", "主办单位性质"),
    ("permit", "网站备案/许可证号"),
    ("host", "网站域名"),
]


class ResultWriter:
    """Prints each result to stdout in the selected format"""

    def __init__(self, json_output: bool = False, stream: Optional[TextIO] = None):
        self.json_output = json_output
        self.stream = stream

    def _text_lines(self, result: Result) -> List[str]:
        return [f"{label}: {getattr(result, field)}" for field, label in TEXT_LABELS]

    def format(self, result: Result) -> str:
        if self.json_output:
            return result.model_dump_json()
        return "\n".join(self._text_lines(result))

    def write(self, result: Result) -> None:
        stream = self.stream or sys.stdout
        print(self.format(result), file=stream, flush=True)
