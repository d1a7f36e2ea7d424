"""Tests for the duplicate NIS check."""

from dataweaver.ingestion import check_duplicates, find_identity_header


class TestFindIdentityHeader:
    def test_exact_headers_preferred(self):
        rows = [["NISN", "NIS Lokal", "Nama Ayah", "Nama Lengkap", "Tempat, Tanggal Lahir"]]
        header = find_identity_header(rows)
        assert (header.nis_index, header.name_index, header.dob_index) == (1, 3, 4)

    def test_falls_back_to_any_match(self):
        header = find_identity_header([["NISN", "Nama Kelas", "Tanggal Lahir"]])
        assert (header.nis_index, header.name_index) == (0, 1)

    def test_skips_title_rows(self):
        rows = [["Data Siswa"], [], ["NIS", "Nama", "Tgl Lahir"]]
        assert find_identity_header(rows).row_index == 2

    def test_only_first_rows_scanned(self):
        rows = [[""]] * 20 + [["NIS", "Nama", "Tanggal Lahir"]]
        assert find_identity_header(rows) is None
        assert find_identity_header(rows, scan_rows=21).row_index == 20

    def test_needs_birth_date_column(self):
        assert find_identity_header([["NIS", "Nama"]]) is None


class TestCheckDuplicates:
    def test_duplicates_across_files(self, class_files):
        report = check_duplicates(class_files)
        assert report.ok
        assert [(r.nis, r.name, r.file_name, r.sheet_name) for r in report.duplicates] == [
            ("1001", "Jane Doe", "kelas7.xlsx", "7A"),
            ("1001", "Jane D.", "kelas8.xlsx", "8A"),
        ]

    def test_empty_nis(self, class_files):
        report = check_duplicates(class_files)
        assert [(r.name, r.sheet_name) for r in report.empty_nis] == [("Siti", "7A"), ("Rudi", "8A")]

    def test_empty_birth_date(self, class_files):
        report = check_duplicates(class_files)
        assert [(r.name, r.sheet_name) for r in report.empty_dob] == [("Budi", "7A"), ("Rudi", "8A")]

    def test_sheet_without_header_skipped(self, class_files):
        assert check_duplicates(class_files).skipped_sheets == ["kelas7.xlsx -> Catatan"]

    def test_unreadable_file_reported(self, class_files, tmp_path):
        bad = tmp_path / "bad.xlsx"
        bad.write_text("not a workbook")
        report = check_duplicates([str(bad)] + class_files)
        assert report.ok
        assert len(report.file_errors) == 1
        assert report.file_errors[0].startswith("Error reading bad.xlsx")
        assert len(report.duplicates) == 2

    def test_no_files(self):
        assert check_duplicates([]).error == "Please provide at least one Excel file to check for duplicates."


class TestDuplicateSummary:
    def test_render(self, class_files):
        assert check_duplicates(class_files).render() == (
            "Duplicated NIS:\n"
            "- 1001 is used by Jane Doe and Jane D. in sheet 7A, 8A\n"
            "\n"
            "Students with an empty NIS:\n"
            "- Siti sheet 7A\n"
            "- Rudi sheet 8A\n"
            "\n"
            "Students with an empty date of birth:\n"
            "- Budi sheet 7A\n"
            "- Rudi sheet 8A"
        )

    def test_no_problems(self, tmp_path, write_workbook):
        path = write_workbook(tmp_path / "ok.xlsx", {
            "Siswa": [["NIS", "Nama", "Tanggal Lahir"], [1, "Jane", "2011-01-02"], [2, "Budi", "2011-02-03"]],
        })
        report = check_duplicates([path])
        assert not report.has_issues
        assert report.render() == "No problems found."
