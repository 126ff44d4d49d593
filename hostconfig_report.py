# hostconfig_report.py - HOLFY27 HostConfig Report Generation
# Version 1.0 - October 2026
# Author - HOL Core Team
#
# Text table, HTML and JSON reports for rollouts and host operations.

"""
HostConfig Report Generation Module

Generates formatted reports from rollout and host operation results:
- Fixed-width text tables for the console
- HTML report with styling and status indicators
- JSON report for machine processing
"""

import os
import json
import datetime
from html import escape
from typing import Dict, List, Sequence, Tuple

from rollout.base import HostActionResult, RolloutReport, get_status_icon, get_status_class


#==============================================================================
# TEXT TABLES
#==============================================================================

def format_table(headers: Sequence[str], rows: List[Sequence]) -> str:
    """
    Format rows as a fixed-width text table.

    Args:
        headers: Column headers
        rows: Row values (converted with str())

    Returns:
        Table as a string, one line per row
    """
    cells = [[str(h) for h in headers]] + [['' if v is None else str(v) for v in row] for row in rows]
    widths = [max(len(row[i]) for row in cells) for i in range(len(headers))]

    def line(row):
        return '  '.join(value.ljust(widths[i]) for i, value in enumerate(row)).rstrip()

    lines = [line(cells[0]), '  '.join('-' * w for w in widths)]
    lines.extend(line(row) for row in cells[1:])
    return '\n'.join(lines)


def format_rollout_table(report: RolloutReport) -> str:
    """Probe results followed by per-host outcomes"""
    probe_rows = [
        (p.candidate.address, p.candidate.role.value,
         'reachable' if p.reachable else 'SKIPPED', p.error)
        for p in report.probes
    ]
    outcome_rows = [
        (o.host, 'PASS' if o.success else 'FAIL',
         ', '.join(o.applied) if o.applied else '(none)', o.reason or '')
        for o in report.outcomes
    ]

    summary = report.get_summary()
    lines = [
        f'{report.setting.upper()} rollout to {report.scope}',
        '',
        format_table(('Endpoint', 'Role', 'Probe', 'Error'), probe_rows),
        '',
        format_table(('Host', 'Status', 'Applied', 'Reason'), outcome_rows),
        '',
        f'Summary: {summary["succeeded"]} succeeded, {summary["failed"]} failed, '
        f'{summary["skipped"]} endpoint(s) skipped - {report.overall_status}',
    ]
    return '\n'.join(lines)


def format_action_table(results: List[HostActionResult]) -> str:
    """Generic host / action / status / message table"""
    rows = [(r.host, r.action, r.status, r.message) for r in results]
    return format_table(('Host', 'Action', 'Status', 'Message'), rows)


def format_uptime_table(results: List[HostActionResult]) -> str:
    rows = []
    for r in results:
        rows.append((r.host, r.status, r.message, r.details.get('boot_time', '')))
    return format_table(('Host', 'Status', 'Uptime', 'Boot Time'), rows)


def format_adapter_table(results: List[HostActionResult]) -> str:
    """One row per adapter; hosts that failed get a single row with the error"""
    rows = []
    for r in results:
        if r.is_fail():
            rows.append((r.host, '', 'FAIL', '', '', r.message))
            continue
        for pnic in r.details.get('pnics', []):
            speed = f'{pnic["speed_mb"]} Mb' if pnic['speed_mb'] else 'down'
            rows.append((r.host, pnic['device'], 'pnic', pnic['mac'], speed, pnic['driver']))
        for vnic in r.details.get('vnics', []):
            addr = f'{vnic["ip"]}/{vnic["netmask"]}'
            rows.append((r.host, vnic['device'], 'vmk', vnic['mac'], addr, vnic['portgroup']))
    return format_table(('Host', 'Device', 'Type', 'MAC', 'Link/IP', 'Driver/Portgroup'), rows)


#==============================================================================
# HTML REPORT GENERATION
#==============================================================================

HTML_STYLE = '''
        body {
            font-family: 'Segoe UI', -apple-system, BlinkMacSystemFont, sans-serif;
            margin: 0;
            padding: 20px;
            background: #f1f5f9;
            color: #1e293b;
            line-height: 1.5;
        }
        .container { max-width: 1200px; margin: 0 auto; }
        header, section {
            background: white;
            border-radius: 8px;
            padding: 16px 24px;
            margin-bottom: 16px;
            box-shadow: 0 1px 3px rgba(0,0,0,0.1);
        }
        h1 { margin: 0 0 8px 0; font-size: 24px; color: #0f172a; }
        h2 { margin: 0 0 12px 0; font-size: 16px; color: #334155; }
        .meta { color: #64748b; font-size: 14px; }
        .meta span { margin-right: 24px; }
        .check-list { padding: 0; margin: 0; list-style: none; }
        .check-item {
            padding: 8px 0;
            border-bottom: 1px solid #f1f5f9;
            display: flex;
            gap: 12px;
        }
        .check-item:last-child { border-bottom: none; }
        .check-content { flex-grow: 1; }
        .check-name { font-weight: 500; }
        .check-message { font-size: 14px; color: #64748b; }
        .check-status {
            padding: 2px 8px;
            border-radius: 4px;
            font-size: 12px;
            font-weight: 600;
            text-transform: uppercase;
        }
        .status-pass { background: #dcfce7; color: #166534; }
        .status-fail { background: #fee2e2; color: #991b1b; }
        .status-warn { background: #fef3c7; color: #92400e; }
        .status-info { background: #dbeafe; color: #1e40af; }
        .status-skipped { background: #f1f5f9; color: #475569; }
        footer { text-align: center; padding: 24px; color: #94a3b8; font-size: 12px; }
'''


def generate_html_content(title: str, meta: Dict[str, str],
                          sections: List[Tuple[str, List[Tuple[str, str, str]]]]) -> str:
    """
    Generate HTML content.

    Args:
        title: Page title
        meta: Header key/value pairs
        sections: List of (section name, [(item name, status, message), ...])

    Returns:
        HTML string
    """
    meta_html = ''.join(f'<span>{escape(k)}: {escape(str(v))}</span>' for k, v in meta.items())

    html = f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{escape(title)}</title>
    <style>{HTML_STYLE}    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>{escape(title)}</h1>
            <div class="meta">{meta_html}</div>
        </header>
'''

    for section_name, items in sections:
        if not items:
            continue

        html += f'        <section>\n            <h2>{escape(section_name)}</h2>\n'
        html += '            <ul class="check-list">\n'
        for name, status, message in items:
            html += f'''                <li class="check-item">
                    <span class="check-icon">{get_status_icon(status)}</span>
                    <div class="check-content">
                        <div class="check-name">{escape(name)}</div>
                        <div class="check-message">{escape(message)}</div>
                    </div>
                    <span class="check-status {get_status_class(status)}">{status}</span>
                </li>
'''
        html += '            </ul>\n        </section>\n'

    html += '''
        <footer>
            HostConfig - HOLFY27 ESXi Host Configuration | HOL Core Team
        </footer>
    </div>
</body>
</html>
'''
    return html


def write_file(output_path: str, content: str):
    """Write content, creating the parent directory if needed"""
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_path, 'w') as f:
        f.write(content)


def generate_rollout_html(report: RolloutReport, output_path: str):
    """
    Generate an HTML report for an endpoint rollout.

    Args:
        report: RolloutReport from the planner
        output_path: Path to write the HTML file
    """
    probe_items = [
        (f'{p.candidate.address} ({p.candidate.role.value})',
         'PASS' if p.reachable else 'WARN',
         'Reachable' if p.reachable else f'Not reachable - skipped {p.error}'.strip())
        for p in report.probes
    ]
    host_items = [
        (o.host, 'PASS' if o.success else 'FAIL',
         f'Applied: {", ".join(o.applied) or "(none)"}' if o.success else o.reason)
        for o in report.outcomes
    ]
    meta = {
        'Scope': report.scope,
        'Started': report.started,
        'Finished': report.finished,
        'Overall Status': report.overall_status,
    }
    html = generate_html_content(
        f'HostConfig {report.setting.upper()} Rollout',
        meta,
        [('Endpoint Reachability', probe_items), ('Hosts', host_items)]
    )
    write_file(output_path, html)


def generate_actions_html(title: str, results: List[HostActionResult], output_path: str):
    """
    Generate an HTML report for a host operation.

    Args:
        title: Report title
        results: HostActionResult list
        output_path: Path to write the HTML file
    """
    items = [(r.host, r.status, r.message) for r in results]
    meta = {
        'Generated': datetime.datetime.now().isoformat(),
        'Hosts': str(len(results)),
        'Failed': str(sum(1 for r in results if r.is_fail())),
    }
    write_file(output_path, generate_html_content(title, meta, [('Hosts', items)]))


#==============================================================================
# JSON REPORT GENERATION
#==============================================================================

def actions_to_json(results: List[HostActionResult], indent: int = 2) -> str:
    return json.dumps([r.to_dict() for r in results], indent=indent, default=str)


def generate_json_report(content: str, output_path: str):
    """
    Write a JSON report.

    Args:
        content: JSON string (RolloutReport.to_json() or actions_to_json())
        output_path: Path to write the JSON file
    """
    write_file(output_path, content)
