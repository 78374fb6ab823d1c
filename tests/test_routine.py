import unittest

from mysqldiff.errors import ParseError
from mysqldiff.routine import parse_routine


PROCEDURE = """CREATE DEFINER=root@localhost PROCEDURE touch(IN n INT)
    MODIFIES SQL DATA
    COMMENT 'bump it'
BEGIN
  UPDATE customer SET name = name WHERE id = n;
END"""

FUNCTION = """CREATE DEFINER=root@localhost FUNCTION double_it(x INT) RETURNS int(11)
    DETERMINISTIC
RETURN x * 2"""

TRIGGER = """CREATE DEFINER=root@localhost TRIGGER customer_bi BEFORE INSERT ON customer FOR EACH ROW SET NEW.name = TRIM(NEW.name)"""


class TestParseRoutine(unittest.TestCase):
    def test_procedure(self) -> None:
        routine = parse_routine(PROCEDURE)
        self.assertEqual(routine.key, ("PROCEDURE", "touch"))
        self.assertEqual(routine.parameters, "IN n INT")
        self.assertEqual(routine.characteristics, ("MODIFIES SQL DATA", "COMMENT 'bump it'"))
        self.assertTrue(routine.body.startswith("BEGIN"))
        self.assertEqual(routine.definer, "root@localhost")

    def test_function(self) -> None:
        routine = parse_routine(FUNCTION)
        self.assertEqual(routine.key, ("FUNCTION", "double_it"))
        self.assertEqual(routine.options, "RETURNS int(11) DETERMINISTIC")
        self.assertEqual(routine.body, "RETURN x * 2")

    def test_trigger(self) -> None:
        routine = parse_routine(TRIGGER)
        self.assertEqual(routine.key, ("TRIGGER", "customer_bi"))
        self.assertEqual(routine.options, "BEFORE INSERT ON customer")
        self.assertEqual(routine.body, "SET NEW.name = TRIM(NEW.name)")

    def test_definer_and_layout_are_not_compared(self) -> None:
        other = parse_routine(PROCEDURE.replace("root@localhost", "app@%").replace("\n    ", " "))
        self.assertEqual(parse_routine(PROCEDURE).signature(), other.signature())

    def test_body_change_is_compared(self) -> None:
        other = parse_routine(PROCEDURE.replace("id = n", "id > n"))
        self.assertNotEqual(parse_routine(PROCEDURE).signature(), other.signature())

    def test_statements(self) -> None:
        routine = parse_routine(FUNCTION)
        self.assertEqual(routine.drop_statement(), "DROP FUNCTION double_it;")
        create = routine.create_statement()
        self.assertTrue(create.startswith("DELIMITER ;;\nCREATE DEFINER=CURRENT_USER FUNCTION double_it(x INT)"))
        self.assertTrue(create.endswith("RETURN x * 2;;\nDELIMITER ;"))

    def test_unparsable(self) -> None:
        with self.assertRaises(ParseError):
            parse_routine("CREATE PROCEDURE")
        with self.assertRaises(ParseError):
            parse_routine("CREATE PROCEDURE p(IN a INT")
        with self.assertRaises(ParseError):
            parse_routine("CREATE PROCEDURE p() DETERMINISTIC")


if __name__ == "__main__":
    unittest.main()
