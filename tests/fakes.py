"""In-memory stand-ins for the S3 client and the Supabase query builder."""
import copy
from datetime import datetime, timezone
from types import SimpleNamespace

from botocore.exceptions import ClientError


def client_error(code, operation):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeBody:
    def __init__(self, data):
        self._data = data

    def read(self):
        return self._data


class FakeS3Client:
    """Implements the subset of the boto3 S3 client the storage layer calls."""

    def __init__(self):
        self.objects = {}
        self.calls = []
        # operation name -> predicate(key) that makes the call fail
        self.failures = {}

    def _check(self, operation, key):
        predicate = self.failures.get(operation)
        if predicate and predicate(key):
            raise client_error("InternalError", operation)

    def put(self, key, data=b"", content_type="application/octet-stream"):
        self.objects[key] = {
            "Body": data,
            "ContentType": content_type,
            "LastModified": datetime.now(timezone.utc),
        }

    def keys(self, prefix=""):
        return sorted(k for k in self.objects if k.startswith(prefix))

    def count_calls(self, operation):
        return sum(1 for op, _ in self.calls if op == operation)

    def list_objects_v2(self, Bucket, Prefix="", Delimiter=None, MaxKeys=1000, ContinuationToken=None):
        self.calls.append(("list_objects_v2", {"Prefix": Prefix, "ContinuationToken": ContinuationToken}))
        items = []
        seen_prefixes = set()
        for key in self.keys(Prefix):
            if ContinuationToken is not None:
                if key <= ContinuationToken:
                    continue
                if ContinuationToken.endswith("/") and key.startswith(ContinuationToken):
                    continue
            rest = key[len(Prefix):]
            if Delimiter and Delimiter in rest:
                common = Prefix + rest[:rest.index(Delimiter) + 1]
                if common not in seen_prefixes:
                    seen_prefixes.add(common)
                    items.append(("prefix", common))
                continue
            items.append(("key", key))

        page = items[:MaxKeys]
        truncated = len(items) > MaxKeys
        response = {"IsTruncated": truncated, "KeyCount": len(page)}
        contents = [
            {
                "Key": name,
                "Size": len(self.objects[name]["Body"]),
                "LastModified": self.objects[name]["LastModified"],
            }
            for kind, name in page if kind == "key"
        ]
        prefixes = [{"Prefix": name} for kind, name in page if kind == "prefix"]
        if contents:
            response["Contents"] = contents
        if prefixes:
            response["CommonPrefixes"] = prefixes
        if truncated:
            response["NextContinuationToken"] = page[-1][1]
        return response

    def put_object(self, Bucket, Key, Body, ContentType="application/octet-stream"):
        self.calls.append(("put_object", {"Key": Key}))
        self._check("put_object", Key)
        self.put(Key, Body, ContentType)
        return {}

    def get_object(self, Bucket, Key):
        self.calls.append(("get_object", {"Key": Key}))
        if Key not in self.objects:
            raise client_error("NoSuchKey", "GetObject")
        obj = self.objects[Key]
        return {"Body": FakeBody(obj["Body"]), "ContentType": obj["ContentType"]}

    def head_object(self, Bucket, Key):
        self.calls.append(("head_object", {"Key": Key}))
        if Key not in self.objects:
            raise client_error("404", "HeadObject")
        obj = self.objects[Key]
        return {
            "ContentLength": len(obj["Body"]),
            "ContentType": obj["ContentType"],
            "LastModified": obj["LastModified"],
        }

    def copy_object(self, Bucket, CopySource, Key):
        self.calls.append(("copy_object", {"Source": CopySource["Key"], "Key": Key}))
        self._check("copy_object", Key)
        if CopySource["Key"] not in self.objects:
            raise client_error("NoSuchKey", "CopyObject")
        self.objects[Key] = copy.deepcopy(self.objects[CopySource["Key"]])
        return {}

    def delete_object(self, Bucket, Key):
        self.calls.append(("delete_object", {"Key": Key}))
        self._check("delete_object", Key)
        self.objects.pop(Key, None)
        return {}

    def delete_objects(self, Bucket, Delete):
        keys = [o["Key"] for o in Delete["Objects"]]
        self.calls.append(("delete_objects", {"Keys": keys}))
        errors = []
        for key in keys:
            predicate = self.failures.get("delete_objects")
            if predicate and predicate(key):
                errors.append({"Key": key, "Code": "AccessDenied"})
                continue
            self.objects.pop(key, None)
        return {"Errors": errors} if errors else {}


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload = None
        self.count = None
        self.filters = []
        self.ordering = None
        self.window = None
        self.single = False

    def select(self, columns="*", count=None):
        self.action = "select"
        self.count = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def or_(self, expression):
        # only the "<col>.ilike.%term%" form is used
        clauses = []
        for clause in expression.split(","):
            column, _, pattern = clause.split(".", 2)
            clauses.append((column, pattern.strip("%").lower()))
        self.filters.append(
            lambda row: any(term in str(row.get(col) or "").lower() for col, term in clauses)
        )
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def range(self, start, end):
        self.window = (start, end + 1)
        return self

    def limit(self, n):
        self.window = (0, n)
        return self

    def maybe_single(self):
        self.single = True
        return self

    def _matches(self):
        rows = self.db.tables.setdefault(self.table, [])
        return [r for r in rows if all(f(r) for f in self.filters)]

    def execute(self):
        rows = self.db.tables.setdefault(self.table, [])
        if self.table in self.db.fail_tables:
            raise Exception(f"connection to {self.table} failed")
        self.db.executed.append((self.table, self.action, self.window))

        if self.action == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            for new in new_rows:
                if "id" in new and any(r.get("id") == new["id"] for r in rows):
                    raise Exception('duplicate key value violates unique constraint "23505"')
            rows.extend(copy.deepcopy(new_rows))
            return SimpleNamespace(data=copy.deepcopy(new_rows), count=None)

        matched = self._matches()
        if self.action == "update":
            if any(fails(self.table, self.payload) for fails in self.db.update_failures):
                raise Exception(f"update of {self.table} timed out")
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)
        if self.action == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        if self.ordering:
            column, desc = self.ordering
            matched = sorted(matched, key=lambda r: str(r.get(column) or ""), reverse=desc)
        total = len(matched)
        if self.window:
            matched = matched[self.window[0]:self.window[1]]
        data = copy.deepcopy(matched)
        if self.single:
            if not data:
                return None
            return SimpleNamespace(data=data[0], count=None)
        return SimpleNamespace(data=data, count=total if self.count else None)


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.fail_tables = set()
        # predicates over (table, payload) that make an update fail
        self.update_failures = []
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.setdefault(name, [])


class FakeAuth:
    """Supabase Auth stand-in keyed by email (accounts) and access token (sessions)."""

    def __init__(self):
        self.accounts = {}
        self.tokens = {}
        self.get_user_calls = 0

    def add_user(self, email, password, token, mobile_number, app_metadata=None):
        user = SimpleNamespace(
            id=f"user-{mobile_number}",
            email=email,
            user_metadata={"mobile_number": mobile_number},
            app_metadata=app_metadata or {},
        )
        self.accounts[email] = (password, user)
        self.tokens[token] = user
        return user

    def sign_up(self, payload):
        if payload["email"] in self.accounts:
            raise Exception("User already registered")
        user = SimpleNamespace(
            id=f"user-{len(self.accounts) + 1}",
            email=payload["email"],
            user_metadata=payload["options"]["data"],
            app_metadata={},
        )
        self.accounts[payload["email"]] = (payload["password"], user)
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, payload):
        password, user = self.accounts.get(payload["email"], (None, None))
        if user is None or password != payload["password"]:
            raise Exception("Invalid login credentials")
        token = f"token-{user.id}"
        self.tokens[token] = user
        return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token))

    def get_user(self, jwt):
        self.get_user_calls += 1
        if jwt not in self.tokens:
            raise Exception("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.tokens[jwt])
