"""Export/Import service for CSV and XLSX formats."""
from __future__ import annotations

import csv
import io
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, NamedTuple

import openpyxl
from openpyxl.styles import Font, PatternFill

from gms.models import Member, User
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.members import MemberService
from gms.services.results import ServiceResult
from gms.services.users import UserService

MIN_IMPORT_COLUMNS = 14


class ImportResult(NamedTuple):
    success_count: int
    errors: list[tuple[int, str]]
    created: list[Member] | None = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> str:
        lines = [
            "Import completed:",
            f"- Successful: {self.success_count}",
            f"- Errors: {len(self.errors)}",
        ]
        if self.errors:
            lines.append("")
            lines.append("Errors:")
            lines.extend(f"Line {line}: {message}" for line, message in self.errors)
        return "\n".join(lines) + "\n"


def _cell(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return str(value)
    if value is None:
        return ""
    return value


class ExportImportService:
    """Service for exporting and importing members and staff accounts."""

    # Column header -> attribute, in file order
    MEMBER_COLUMNS = [
        ("Random ID", "random_id"),
        ("First Name", "first_name"),
        ("Last Name", "last_name"),
        ("Mobile", "mobile"),
        ("Email", "email"),
        ("Height", "height"),
        ("Weight", "weight"),
        ("Gender", "gender"),
        ("Date of Birth", "date_of_birth"),
        ("Payment", "payment"),
        ("Period", "period"),
        ("Start Date", "start_date"),
        ("End Date", "end_date"),
        ("Assigned Coach ID", "coach_id"),
        ("Branch ID", "branch_id"),
        ("Active", "is_active"),
        ("Created At", "created_at"),
    ]

    USER_COLUMNS = [
        ("ID", "id"),
        ("Username", "username"),
        ("First Name", "first_name"),
        ("Last Name", "last_name"),
        ("Email", "email"),
        ("Mobile", "mobile"),
        ("Role", "role"),
        ("Branch ID", "branch_id"),
        ("Active", "active"),
        ("Last Login", "last_login_at"),
        ("Created At", "created_at"),
    ]

    def __init__(self, members: MemberService | None = None, users: UserService | None = None):
        self.members = members or MemberService()
        self.users = users or UserService()

    @staticmethod
    def _rows(objects: Iterable[Any], columns: list[tuple[str, str]]) -> Iterable[list[Any]]:
        for obj in objects:
            yield [_cell(getattr(obj, attr, None)) for _, attr in columns]

    @staticmethod
    def _to_csv(objects: Iterable[Any], columns: list[tuple[str, str]]) -> str:
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow([header for header, _ in columns])
        writer.writerows(ExportImportService._rows(objects, columns))
        return output.getvalue()

    def export_members_csv(self, ctx: ActorContext, members: list[Member] | None = None) -> str:
        """
        Export members to CSV.

        Args:
            ctx: Actor requesting the export; defaults the rows to what they can see
            members: Explicit rows to export

        Returns:
            CSV string with one header row
        """
        rows = members if members is not None else self.members.list_members(ctx)
        text = self._to_csv(rows, self.MEMBER_COLUMNS)
        audit.log_event(ctx, AuditAction.REPORT_EXPORT, f"Exported {len(rows)} members to CSV")
        return text

    def export_users_csv(self, ctx: ActorContext, users: list[User] | None = None) -> str:
        rows = users if users is not None else self.users.list_visible_to(ctx)
        text = self._to_csv(rows, self.USER_COLUMNS)
        audit.log_event(ctx, AuditAction.REPORT_EXPORT, f"Exported {len(rows)} users to CSV")
        return text

    def export_members_xlsx(self, ctx: ActorContext, members: list[Member] | None = None) -> bytes:
        """Export members to an XLSX workbook with a styled header row."""
        rows = members if members is not None else self.members.list_members(ctx)
        headers = [header for header, _ in self.MEMBER_COLUMNS]

        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.title = "Members"

        # Header styling
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(bold=True, color="FFFFFF")
        for col_idx, header in enumerate(headers, start=1):
            cell = sheet.cell(row=1, column=col_idx, value=header)
            cell.fill = header_fill
            cell.font = header_font

        for row_idx, values in enumerate(self._rows(rows, self.MEMBER_COLUMNS), start=2):
            for col_idx, value in enumerate(values, start=1):
                sheet.cell(row=row_idx, column=col_idx, value=value)

        # Auto-size columns
        for column in sheet.columns:
            width = max(len(str(cell.value)) for cell in column if cell.value is not None)
            sheet.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

        output = io.BytesIO()
        workbook.save(output)
        audit.log_event(ctx, AuditAction.REPORT_EXPORT, f"Exported {len(rows)} members to XLSX")
        return output.getvalue()

    @staticmethod
    def _parse_member_row(parts: list[str], default_branch_id: str | None) -> dict[str, Any]:
        """Map one CSV row to member input; the id, period and end date columns are recomputed."""
        values = [p.strip() for p in parts]

        def optional(index: int) -> str | None:
            return values[index] if len(values) > index and values[index] else None

        data = {
            "first_name": values[1],
            "last_name": values[2],
            "mobile": values[3],
            "email": optional(4),
            "height": optional(5),
            "weight": optional(6),
            "gender": values[7],
            "date_of_birth": optional(8),
            "payment": values[9],
            "start_date": values[11],
            "coach_id": optional(13),
            "branch_id": optional(14) or default_branch_id,
        }
        active = optional(15)
        if active is not None:
            data["is_active"] = active.lower() in ("true", "1", "yes")
        return data

    def import_members_csv(
        self,
        text: str,
        ctx: ActorContext,
        default_branch_id: str | None = None,
    ) -> ServiceResult[ImportResult]:
        """
        Import members from CSV text in the export layout.

        The first line is a header. Blank lines are skipped. Each row is created
        through the member service, so validation, uniqueness and a fresh
        member id apply; one bad row is reported and the rest continue.
        """
        if ctx.is_coach:
            return ServiceResult.denied("Coaches cannot import members")

        success = 0
        errors: list[tuple[int, str]] = []
        created: list[Member] = []

        reader = csv.reader(io.StringIO(text))
        header_skipped = False
        line_number = 0
        for parts in reader:
            line_number = reader.line_num
            if not header_skipped:
                header_skipped = True
                continue
            if not any(p.strip() for p in parts):
                continue
            if len(parts) < MIN_IMPORT_COLUMNS:
                errors.append((line_number, f"Invalid CSV format: expected at least {MIN_IMPORT_COLUMNS} columns"))
                continue

            data = self._parse_member_row(parts, default_branch_id)
            deactivate = data.pop("is_active", True) is False

            result = self.members.create(data, ctx)
            if not result:
                errors.append((line_number, result.message))
                continue
            if deactivate:
                self.members.delete(result.value.id, ctx)
            success += 1
            created.append(result.value)

        outcome = ImportResult(success, errors, created)
        audit.log_event(ctx, AuditAction.DATA_IMPORT,
                        f"Imported members from CSV: {success} successful, {len(errors)} errors")
        return ServiceResult.success(outcome, outcome.summary())


__all__ = ["ExportImportService", "ImportResult", "MIN_IMPORT_COLUMNS"]
