"""Tests for job selection and skip marking."""

from testplane.runner.filters import JobFilter, apply_skip, prepare_jobs, select_jobs
from testplane.runner.jobs import Job, Suite, Test


def _noop(_assert: object) -> None:
    return None


def _forest() -> tuple[list[Job], dict[str, Job]]:
    """math > {add #fast, sub}, io > {read #slow}, lone."""
    math = Suite(None, "math")
    add = Test(math, "add", _noop, tags=["fast"])
    sub = Test(math, "sub", _noop)
    math.jobs = [add, sub]
    io = Suite(None, "io", tags=["slow"])
    read = Test(io, "read", _noop)
    io.jobs = [read]
    lone = Test(None, "lone", _noop)
    jobs: list[Job] = [math, io, lone]
    return jobs, {"math": math, "add": add, "sub": sub, "io": io, "read": read, "lone": lone}


class TestSelectJobs:
    """Predicate-driven pruning."""

    def test_matching_suite_kept_whole(self) -> None:
        jobs, by_name = _forest()

        selected = select_jobs(jobs, lambda job: job.description == "math")

        assert selected == [by_name["math"]]
        assert len(by_name["math"].jobs) == 2

    def test_suite_narrowed_to_matching_descendants(self) -> None:
        jobs, by_name = _forest()

        selected = select_jobs(jobs, lambda job: job.description == "sub")

        assert selected == [by_name["math"]]
        assert by_name["math"].jobs == [by_name["sub"]]

    def test_nothing_matches(self) -> None:
        jobs, _ = _forest()

        assert select_jobs(jobs, lambda job: False) == []


class TestPrepareJobs:
    """Filter precedence and composition."""

    def test_no_filter_keeps_everything(self) -> None:
        jobs, _ = _forest()

        assert prepare_jobs(jobs, JobFilter()) == jobs

    def test_tag_filter_includes_inherited_tags(self) -> None:
        jobs, by_name = _forest()

        selected = prepare_jobs(jobs, JobFilter(tags={"slow"}))

        assert selected == [by_name["io"]]

    def test_text_filter_matches_full_description(self) -> None:
        jobs, by_name = _forest()

        selected = prepare_jobs(jobs, JobFilter(text="math > ad"))

        assert selected == [by_name["math"]]
        assert by_name["math"].jobs == [by_name["add"]]

    def test_hash_filter(self) -> None:
        jobs, by_name = _forest()

        selected = prepare_jobs(jobs, JobFilter(hashes={by_name["read"].hash}))

        assert selected == [by_name["io"]]

    def test_filters_compose(self) -> None:
        """Each active filter narrows the result of the previous one."""
        jobs, by_name = _forest()

        selected = prepare_jobs(
            jobs,
            JobFilter(hashes={by_name["math"].hash}, tags={"fast"}),
        )

        assert selected == [by_name["math"]]
        assert by_name["math"].jobs == [by_name["add"]]

    def test_only_overrides_tag(self) -> None:
        """A tag filter matching another branch does not hide the only job."""
        jobs, by_name = _forest()

        selected = prepare_jobs(jobs, JobFilter(only_ids={by_name["lone"].id}, tags={"slow"}))

        assert selected == [by_name["lone"]]

    def test_predicates_without_only(self) -> None:
        job_filter = JobFilter(hashes={"x"}, tags={"t"}, text="q")

        assert len(job_filter.predicates()) == 3

    def test_only_is_sole_predicate(self) -> None:
        job_filter = JobFilter(only_ids={1}, hashes={"x"}, tags={"t"}, text="q")

        assert len(job_filter.predicates()) == 1


class TestApplySkip:
    """Skip marking by hash."""

    def test_skip_suite_marks_subtree(self) -> None:
        jobs, by_name = _forest()

        apply_skip(jobs, {by_name["math"].hash})

        assert by_name["math"].skip
        assert by_name["add"].skip and by_name["sub"].skip
        assert not by_name["read"].skip

    def test_skip_single_test(self) -> None:
        jobs, by_name = _forest()

        prepare_jobs(jobs, JobFilter(skip_hashes={by_name["sub"].hash}))

        assert by_name["sub"].skip
        assert not by_name["add"].skip
