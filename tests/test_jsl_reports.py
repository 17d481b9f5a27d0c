# This file is part of ctrl_jsl.
#
# Developed for the LSST Data Management System.
# This product includes software developed by the LSST Project
# (https://www.lsst.org).
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# This software is dual licensed under the GNU General Public License and also
# under a 3-clause BSD license. Recipients may choose which of these licenses
# to use; please see the files gpl-3.0.txt and/or bsd_license.txt,
# respectively.  If you choose the GPL option then the following text applies
# (but note that there is still no warranty even if you opt for BSD instead):
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Tests for reporting mechanism."""

import unittest

from lsst.ctrl.jsl import (
    BaseReport,
    ErrorKind,
    IssueReport,
    JobModel,
    StepSummaryReport,
    ValidationResult,
    WarningKind,
)
from lsst.ctrl.jsl.tests.job_test_utils import make_full_job


class FakeReport(BaseReport):
    """A report with one row per step name."""

    def add(self, source):
        for step in source.steps:
            self._table.add_row([step.name, step.kind.name.lower()])


class BaseReportTestCase(unittest.TestCase):
    """Test methods shared by all reports."""

    def setUp(self):
        self.report = FakeReport([("NAME", "U"), ("KIND", "U")])
        self.report.add(make_full_job())

    def testLength(self):
        self.assertEqual(len(self.report), 4)

    def testString(self):
        lines = str(self.report).splitlines()
        self.assertEqual(lines[0].split(), ["NAME", "KIND"])
        self.assertEqual(lines[2].split(), ["init", "batchlet"])
        self.assertEqual(len(lines), 6)

    def testNoMessage(self):
        self.assertIsNone(self.report.message)


class IssueReportTestCase(unittest.TestCase):
    """Test the report listing validation problems."""

    def testErrorsBeforeWarnings(self):
        result = ValidationResult()
        result.add_warning(WarningKind.BEST_PRACTICE, "Consider adding job listeners", "job")
        result.add_error(ErrorKind.CONTENT, 'Duplicate ID "a" found', "step")
        report = IssueReport()
        report.add(result)
        self.assertEqual(list(report._table["SEVERITY"]), ["ERROR", "WARNING"])
        self.assertEqual(list(report._table["KIND"]), ["content", "best-practice"])
        self.assertEqual(list(report._table["ELEMENT"]), ["step", "job"])
        self.assertIsNone(report.message)

    def testNoProblems(self):
        report = IssueReport()
        report.add(ValidationResult())
        self.assertEqual(len(report), 0)
        self.assertEqual(report.message, "No problems found.")


class StepSummaryReportTestCase(unittest.TestCase):
    """Test the report listing execution elements."""

    def setUp(self):
        self.report = StepSummaryReport()
        self.report.add(make_full_job())

    def testRows(self):
        table = self.report._table
        self.assertEqual(
            list(table["NAME"]),
            ["init", "route", "parallel", "accounts", "loadAccounts", "ledgers", "loadLedgers", "report"],
        )
        self.assertEqual(
            list(table["KIND"]),
            ["batchlet", "decision", "split", "flow", "chunk (partitioned)", "flow", "chunk", "batchlet"],
        )
        self.assertEqual(list(table["PARENT"])[3:5], ["parallel", "accounts"])

    def testClassesAndTransitions(self):
        rows = {row["NAME"]: row for row in self.report._table}
        self.assertEqual(rows["route"]["CLASSES"], "com.example.batch.RouteDecider")
        self.assertEqual(rows["route"]["TRANSITIONS"], "BULK->parallel, NONE:end, *:fail")
        self.assertEqual(rows["parallel"]["TRANSITIONS"], "*->report")
        self.assertEqual(
            rows["loadLedgers"]["CLASSES"],
            "com.example.batch.RecordReader, com.example.batch.RecordProcessor, "
            "com.example.batch.RecordWriter",
        )

    def testEmptyJob(self):
        report = StepSummaryReport()
        report.add(JobModel(batch_name="empty"))
        self.assertEqual(len(report), 0)
        self.assertIn("no steps", report.message)


if __name__ == "__main__":
    unittest.main()
